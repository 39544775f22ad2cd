"""ATTL VM - stack machine that runs compiled templates."""

from attl.vm.machine import CallFrame, Machine, ScanFrame, execute

__all__ = ["CallFrame", "Machine", "ScanFrame", "execute"]
