#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
    File name: testTransportHandler.py
    Author: Alex Biddle

    Description:
        Tests for HTTPTransport over a mocked requests.Session and for the
        locale-based default region.
"""

import unittest
from unittest import mock

import requests

from appmanifest.handlers.transport_handler import HTTPTransport, default_region
from appmanifest.handlers.error_handler import ApplicationCodes, TransportError
from appmanifest.server_config import ServerConfig


def _response(status_code: int = 200, body=None, json_error: bool = False) -> mock.Mock:
    response = mock.Mock(status_code=status_code)
    if json_error:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = body
    return response


class TestHTTPTransport(unittest.TestCase):

    def setUp(self) -> None:
        self.session = mock.MagicMock()
        self.session.headers = {}
        self.config = ServerConfig("https://manifest.example/", "shared-pass", timeout_seconds=3.0)
        self.transport = HTTPTransport(self.config, self.session)
        self.url = self.transport.build_url("api/application")

    """
        URLs are built from the configured base URL.
    """
    def test_build_url(self):

        self.assertEqual("https://manifest.example/api/application", self.url)

    """
        A default User-Agent is added without replacing one the caller set.
    """
    def test_user_agent(self):

        self.assertEqual("appmanifest/1.0", self.session.headers["User-Agent"])

        session = mock.MagicMock()
        session.headers = {"User-Agent": "installer/3"}
        HTTPTransport(self.config, session)

        self.assertEqual("installer/3", session.headers["User-Agent"])

    """
        POST sends the parameters as form data with the configured timeout.
    """
    def test_post_request(self):

        self.session.post.return_value = _response(body={"sucess": True})

        body = self.transport.request(self.url, {"id": "app1"})

        self.assertEqual({"sucess": True}, body)
        self.session.post.assert_called_once_with(self.url, data={"id": "app1"}, timeout=3.0)
        self.session.get.assert_not_called()

    """
        GET sends the parameters as a query string.
    """
    def test_get_request(self):

        config = ServerConfig("https://manifest.example", "shared-pass", http_method="GET")
        transport = HTTPTransport(config, self.session)
        self.session.get.return_value = _response(body={"result": "2024-01-02T03:04:05Z"})

        transport.request(self.url, {})

        self.session.get.assert_called_once_with(self.url, params={}, timeout=10.0)

    """
        Network failures become CONNECTION_ERROR.
    """
    def test_connection_error(self):

        self.session.post.side_effect = requests.ConnectionError("refused")

        with self.assertRaises(TransportError) as cm:
            self.transport.request(self.url, {"id": "app1"})

        self.assertEqual(ApplicationCodes.CONNECTION_ERROR, cm.exception.application_code)
        self.assertIsNone(cm.exception.http_code)

    """
        Timeouts are network failures too.
    """
    def test_timeout(self):

        self.session.post.side_effect = requests.Timeout("slow")

        with self.assertRaises(TransportError) as cm:
            self.transport.request(self.url, {})

        self.assertEqual(ApplicationCodes.CONNECTION_ERROR, cm.exception.application_code)

    """
        Non-2xx statuses become HTTP_STATUS_ERROR carrying the status.
    """
    def test_http_status_error(self):

        self.session.post.return_value = _response(status_code=503, body={"sucess": False})

        with self.assertRaises(TransportError) as cm:
            self.transport.request(self.url, {})

        self.assertEqual(ApplicationCodes.HTTP_STATUS_ERROR, cm.exception.application_code)
        self.assertEqual(503, cm.exception.http_code)

    """
        Bodies that are not JSON objects become MALFORMED_RESPONSE.
    """
    def test_malformed_body(self):

        for response in (_response(json_error=True), _response(body=["sucess"]), _response(body=None)):
            with self.subTest(response=response):
                self.session.post.return_value = response

                with self.assertRaises(TransportError) as cm:
                    self.transport.request(self.url, {})

                self.assertEqual(ApplicationCodes.MALFORMED_RESPONSE, cm.exception.application_code)

    """
        close() closes the underlying session.
    """
    def test_close(self):

        self.transport.close()

        self.session.close.assert_called_once_with()


class TestDefaultRegion(unittest.TestCase):

    """
        The territory of the process locale is returned upper-cased.
    """
    def test_region_from_locale(self):

        cases = (
            (("en_US", "UTF-8"), "US"),
            (("pt_br", "UTF-8"), "BR"),
            (("sr_RS@latin", None), "RS"),
            (("de-AT", None), "AT"),
        )

        for value, expected in cases:
            with self.subTest(value=value):
                with mock.patch("locale.getlocale", return_value=value):
                    self.assertEqual(expected, default_region())

    """
        Unknown or territory-less locales give an empty region.
    """
    def test_region_unknown(self):

        for value in ((None, None), ("C", None), ("", None)):
            with self.subTest(value=value):
                with mock.patch("locale.getlocale", return_value=value):
                    self.assertEqual("", default_region())

        with mock.patch("locale.getlocale", side_effect=ValueError("unknown locale")):
            self.assertEqual("", default_region())


if __name__ == "__main__":
    unittest.main()
