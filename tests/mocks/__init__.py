"""Mock objects for testing."""

from tests.mocks.fakes import (
    FakeClock,
    FakeInstaller,
    FakeRoles,
    MappedStatusReader,
    RecordingApplier,
    ScriptedStatusReader,
)

__all__ = [
    "FakeClock",
    "FakeInstaller",
    "FakeRoles",
    "MappedStatusReader",
    "RecordingApplier",
    "ScriptedStatusReader",
]
