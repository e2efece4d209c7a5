"""Bulk web crawler.

Fetches a list of URLs concurrently, honours robots.txt, retries transient
failures with exponential backoff, and reduces each page to markdown.

Sub-modules:
- ``config``             : constants and tuning parameters
- ``outcomes``           : ``Success`` / ``Failure`` / ``BatchOutcome`` result types
- ``content_extractor``  : BeautifulSoup + html2text article extraction
- ``robots``             : robots.txt policy checks
- ``http_fetcher``       : async httpx single-URL fetcher with retries
- ``bulk_crawler``       : concurrent, order-preserving batch crawl
- ``cache``              : cache-aside decorator with Redis and in-memory stores
- ``observer``           : logging and Prometheus observation hooks
- ``service``            : ``CrawlerService`` wiring all of the above
- ``tool``               : ``scrape_pages`` adapter for agent tool calls
"""
