# daybook/outputs/base.py
from abc import ABC, abstractmethod

class BaseOutput(ABC):
    @abstractmethod
    def write(self, transactions):
        """Write transactions to the chosen sink and return its path."""
        pass
