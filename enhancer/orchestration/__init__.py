from .bulk import BulkDriver, BulkItemResult
from .orchestrator import EnhancementOrchestrator, PipelineLimits

__all__ = ["BulkDriver", "BulkItemResult", "EnhancementOrchestrator", "PipelineLimits"]
