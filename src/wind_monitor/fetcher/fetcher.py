# wind_monitor/fetcher/fetcher.py
from requests.exceptions import RequestException

from wind_monitor.common.http import ThrottledClient
from wind_monitor.errors import FetchError
from wind_monitor.logger.app_logger import get_logger
from wind_monitor.parser.text_extractor import html_to_text


class WindFetcher:
    """
    Fetch the wind history page and return it as line-oriented text.
    """

    def __init__(self, client: ThrottledClient, url: str, encoding: str = "utf-8"):
        """
        :param client: HTTP client handling spacing and retries
        :param url: history page, e.g. https://www.wind24.it/cattolica/history
        :param encoding: page encoding; the site omits the charset header
        """
        self.client = client
        self.url = url
        self.encoding = encoding
        self.logger = get_logger(__name__)

    def _build_request_headers(self) -> dict[str, str]:
        """Referer pointing at the site root, as a browser navigation would send."""
        scheme, _, rest = self.url.partition("://")
        host = rest.split("/", 1)[0]
        return {"Referer": f"{scheme}://{host}/"} if host else {}

    def fetch_raw(self) -> str:
        """Return the response body decoded with ``self.encoding``.

        :raises FetchError: transport failure or non-success status after retries
        """
        self.logger.debug("Fetching %s", self.url)
        try:
            resp = self.client.send(self.url, headers=self._build_request_headers())
        except RequestException as exc:
            raise FetchError(self.url, f"Failed to fetch {self.url}: {exc}") from exc
        resp.encoding = self.encoding
        return resp.text

    def fetch(self) -> str:
        """Return the page flattened to one observation per line where possible."""
        text = html_to_text(self.fetch_raw())
        self.logger.info("Fetched %s (%s lines)", self.url, text.count("\n") + 1 if text else 0)
        return text
