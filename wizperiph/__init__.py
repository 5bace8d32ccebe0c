"""Memory-mapped calculator peripherals (BCD unit, keyboard, timer, screen, ROM, RAM) on a simple bus."""

__version__ = "0.1.0"