"""Package initializer for `free_data_integration`."""

from .aggregator import Aggregator
from .models import AggregationReport, PropertyData

__all__ = ["Aggregator", "AggregationReport", "PropertyData"]
