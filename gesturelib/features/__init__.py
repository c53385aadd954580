from .timeseries_buffer import TimeseriesBuffer

__all__ = ["TimeseriesBuffer"]
