"""site_monitor.crawler: frontier, fetcher, sitemap seeding and the crawl orchestrator."""
from site_monitor.crawler.crawler import AsyncCrawler
from site_monitor.crawler.models import CrawlPhase, CrawlResult, ErrorRecord, FetchResult

__all__ = ["AsyncCrawler", "CrawlPhase", "CrawlResult", "ErrorRecord", "FetchResult"]
