"""Dataset loading, cleaning and synthetic generation."""

from pso_select.data.process import load_table, process_data
from pso_select.data.synthetic import generate_synthetic_data

__all__ = ["load_table", "process_data", "generate_synthetic_data"]
