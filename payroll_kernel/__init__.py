"""
Payroll Kernel

Shared foundation for the payroll calculation engine:
- Typed exceptions with machine-readable codes
- Structured JSON logging with context propagation
- Injectable clock for deterministic timestamps
"""

__version__ = "0.1.0"
