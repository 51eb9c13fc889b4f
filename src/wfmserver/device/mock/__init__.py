from .simulated_digitizer import SimulatedDigitizer

__all__ = ["SimulatedDigitizer"]
