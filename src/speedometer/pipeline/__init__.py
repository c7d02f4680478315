from .session import PipelineConfig, TrackingSession, build_aggregator

__all__ = ["PipelineConfig", "TrackingSession", "build_aggregator"]
