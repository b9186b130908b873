import pytest
import requests

from formrelay import RelayConfig

VIEW_HTML = """
<html><body>
<form action="formResponse" method="POST">
  <input type="hidden" name="fvv" value="1">
  <input type="hidden" name="fbzx" value="abc123">
  <input type="hidden" name="pageHistory" value="0">
</form>
</body></html>
"""


class FakeResponse:
    def __init__(self, status_code=200, text=""):
        self.status_code = status_code
        self.text = text


class FakeSession:
    """Stands in for the requests module and records every call."""

    def __init__(self, view=None, submit=None, get_error=None, post_error=None):
        self.view = view if view is not None else FakeResponse(200, VIEW_HTML)
        self.submit = submit if submit is not None else FakeResponse(200, "thanks")
        self.get_error = get_error
        self.post_error = post_error
        self.gets = []
        self.posts = []

    def get(self, url, **kwargs):
        self.gets.append((url, kwargs))
        if self.get_error:
            raise self.get_error
        return self.view

    def post(self, url, data=None, **kwargs):
        self.posts.append((url, data, kwargs))
        if self.post_error:
            raise self.post_error
        return self.submit


@pytest.fixture
def config():
    return RelayConfig(form_id="FORM123", base_url="http://upstream.test/forms/d/e", tz="UTC")


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def connection_error():
    return requests.ConnectionError("connection refused")
