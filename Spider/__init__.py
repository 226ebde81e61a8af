from .Spider import RawLink, Spider, crawl_site

__all__ = ["RawLink", "Spider", "crawl_site"]
