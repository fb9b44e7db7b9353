"""HTTP fetcher providers.

HttpxFetcher implements IFetcher on top of httpx.AsyncClient with a
semaphore-bounded number of in-flight requests and HTTPS-only transport.
"""

from verborum.providers.http.httpx_fetcher import HttpxFetcher

__all__ = ["HttpxFetcher"]
