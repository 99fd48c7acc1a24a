"""
Payroll CTC Engine - Employee Locks

In-process serialization of lifecycle calls per employee profile.
The database row lock (SELECT ... FOR UPDATE) covers multiple workers;
this registry covers concurrent requests inside one worker, including
SQLite where FOR UPDATE is a no-op.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class _Slot:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = asyncio.Lock()
        self.users = 0


class EmployeeLockRegistry:
    """One asyncio.Lock per profile id, dropped once nobody holds or awaits it."""

    def __init__(self):
        self._slots: Dict[int, _Slot] = {}

    def __len__(self) -> int:
        return len(self._slots)

    @asynccontextmanager
    async def hold(self, profile_id: int) -> AsyncIterator[None]:
        slot = self._slots.get(profile_id)
        if slot is None:
            slot = self._slots[profile_id] = _Slot()
        slot.users += 1
        try:
            async with slot.lock:
                yield
        finally:
            slot.users -= 1
            if slot.users == 0:
                self._slots.pop(profile_id, None)


employee_locks = EmployeeLockRegistry()
