"""HTTP session handle safe to share across worker threads."""

import threading
import requests


class ThreadLocalSession:
    """
    Hands every thread its own requests.Session.

    requests does not guarantee Session is thread-safe, while batches issue
    calls from several workers at once.
    """

    def __init__(self):
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
        return session

    def get(self, url: str, **kwargs) -> requests.Response:
        return self.session.get(url, **kwargs)

    def post(self, url: str, **kwargs) -> requests.Response:
        return self.session.post(url, **kwargs)

    def put(self, url: str, **kwargs) -> requests.Response:
        return self.session.put(url, **kwargs)
