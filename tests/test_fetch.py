"""
Unit Tests for element text loading and caching

Run with:
    python -m pytest tests/test_fetch.py -v
"""

import os
import tempfile
import unittest
from unittest import mock

import redis
import requests

from globe_service.errors import LoadFailure
from globe_service.fetch import ElementTextCache, fetch_element_text, read_source
from fakes import TWO_RECORDS

URL = "https://celestrak.org/NORAD/elements/gp.php?GROUP=active&FORMAT=tle"


def ok_response(text):
    response = mock.Mock()
    response.text = text
    response.raise_for_status.return_value = None
    return response


class TestReadSource(unittest.TestCase):

    @mock.patch("globe_service.fetch.requests.get")
    def test_url(self, get):
        get.return_value = ok_response(TWO_RECORDS)
        self.assertEqual(read_source(URL), TWO_RECORDS)
        get.assert_called_once_with(URL, timeout=None)

    @mock.patch("globe_service.fetch.requests.get")
    def test_url_timeout_passed(self, get):
        get.return_value = ok_response(TWO_RECORDS)
        read_source(URL, timeout=30)
        get.assert_called_once_with(URL, timeout=30)

    @mock.patch("globe_service.fetch.requests.get")
    def test_http_error(self, get):
        response = ok_response("")
        response.raise_for_status.side_effect = requests.HTTPError("503 Server Error")
        get.return_value = response
        with self.assertRaises(LoadFailure):
            read_source(URL)

    @mock.patch("globe_service.fetch.requests.get")
    def test_connection_error(self, get):
        get.side_effect = requests.ConnectionError("unreachable")
        with self.assertRaises(LoadFailure):
            read_source(URL)

    @mock.patch("globe_service.fetch.requests.get")
    def test_empty_response(self, get):
        get.return_value = ok_response("\n\n")
        with self.assertRaises(LoadFailure):
            read_source(URL)

    def test_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "all.txt")
            with open(path, "w", encoding="utf-8") as f:
                f.write(TWO_RECORDS)
            self.assertEqual(read_source(path), TWO_RECORDS)

    def test_non_utf8_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "all.txt")
            with open(path, "wb") as f:
                f.write("SAT\xe9\n".encode("latin-1") + TWO_RECORDS.encode("ascii"))
            with self.assertRaises(LoadFailure):
                read_source(path)

    def test_missing_file(self):
        with self.assertRaises(LoadFailure):
            read_source("/nonexistent/all.txt")


class TestElementTextCache(unittest.TestCase):

    def setUp(self):
        self.client = mock.Mock()
        self.cache = ElementTextCache(self.client, ttl=60)

    @mock.patch("globe_service.fetch.requests.get")
    def test_cache_hit(self, get):
        self.client.get.return_value = TWO_RECORDS
        self.assertEqual(fetch_element_text(URL, cache=self.cache), TWO_RECORDS)
        self.client.get.assert_called_once_with(f"element_text:{URL}")
        get.assert_not_called()

    @mock.patch("globe_service.fetch.requests.get")
    def test_cache_miss_stores_text(self, get):
        self.client.get.return_value = None
        get.return_value = ok_response(TWO_RECORDS)
        self.assertEqual(fetch_element_text(URL, cache=self.cache), TWO_RECORDS)
        self.client.setex.assert_called_once_with(f"element_text:{URL}", 60, TWO_RECORDS)

    @mock.patch("globe_service.fetch.requests.get")
    def test_redis_failure_disables_cache(self, get):
        self.client.get.side_effect = redis.exceptions.ConnectionError("down")
        get.return_value = ok_response(TWO_RECORDS)
        self.assertEqual(fetch_element_text(URL, cache=self.cache), TWO_RECORDS)
        self.assertIsNone(self.cache.redis_client)
        self.client.setex.assert_not_called()

    def test_failed_fetch_not_cached(self):
        self.client.get.return_value = None
        with self.assertRaises(LoadFailure):
            fetch_element_text("/nonexistent/all.txt", cache=self.cache)
        self.client.setex.assert_not_called()

    def test_from_url_disabled(self):
        self.assertIsNone(ElementTextCache.from_url(None).redis_client)

    @mock.patch("globe_service.fetch.redis.from_url")
    def test_from_url_unreachable(self, from_url):
        from_url.return_value.ping.side_effect = redis.exceptions.ConnectionError("refused")
        cache = ElementTextCache.from_url("redis://localhost:6379")
        self.assertIsNone(cache.redis_client)

    @mock.patch("globe_service.fetch.redis.from_url")
    def test_from_url_connected(self, from_url):
        cache = ElementTextCache.from_url("redis://localhost:6379", ttl=10)
        self.assertIs(cache.redis_client, from_url.return_value)
        self.assertEqual(cache.ttl, 10)
        from_url.assert_called_once_with("redis://localhost:6379", decode_responses=True)


if __name__ == "__main__":
    unittest.main()
