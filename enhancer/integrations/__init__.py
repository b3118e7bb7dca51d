from .extractor import ContentExtractor, ExtractedPage, PageContentExtractor
from .search import ReferenceFinder, WebSearchClient

__all__ = [
    "ContentExtractor",
    "ExtractedPage",
    "PageContentExtractor",
    "ReferenceFinder",
    "WebSearchClient",
]
