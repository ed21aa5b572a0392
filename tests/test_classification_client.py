"""
Unit tests for the classification service client.
Responses are mocked at the urllib opener.
"""
import unittest
import json
import urllib.error
from io import BytesIO
from unittest.mock import Mock, patch, MagicMock

from pagepilot.client import ClassificationClient
from pagepilot.core.actions import ListMutation, ListOp, Navigate, NoMatch, action_to_response
from pagepilot.core.destinations import DEFAULT_DESTINATIONS, find_destination
from pagepilot.core.errors import ServiceError


def mock_response(body):
    response = MagicMock()
    response.__enter__ = Mock(return_value=response)
    response.__exit__ = Mock(return_value=False)
    response.read = Mock(return_value=body if isinstance(body, bytes) else json.dumps(body).encode("utf-8"))
    return response


class TestClassificationClient(unittest.TestCase):

    def setUp(self):
        self.client = ClassificationClient(base_url="http://svc:3001/", timeout=2)

    def test_request_shape(self):
        """Utterance, pages and current page id are posted as JSON."""
        reply = action_to_response(ListMutation(ListOp.CLEAR))
        with patch.object(self.client.opener, 'open', return_value=mock_response(reply)) as opener:
            self.client.classify("clear all filters", DEFAULT_DESTINATIONS, "products")

        request = opener.call_args[0][0]
        self.assertEqual(request.full_url, "http://svc:3001/api/intent/analyze")
        body = json.loads(request.data)
        self.assertEqual(body["text"], "clear all filters")
        self.assertEqual(body["currentPageId"], "products")
        self.assertEqual([p["id"] for p in body["pages"]], [d.id for d in DEFAULT_DESTINATIONS])

    def test_decodes_navigation(self):
        about = find_destination("about", DEFAULT_DESTINATIONS)
        with patch.object(self.client.opener, 'open', return_value=mock_response(action_to_response(Navigate(about)))):
            action = self.client.classify("who are you", DEFAULT_DESTINATIONS)
        self.assertEqual(action, Navigate(about))

    def test_no_match_keeps_utterance(self):
        reply = action_to_response(NoMatch())
        with patch.object(self.client.opener, 'open', return_value=mock_response(reply)):
            action = self.client.classify("hmm", DEFAULT_DESTINATIONS)
        self.assertEqual(action, NoMatch("hmm"))

    def test_http_error(self):
        error = urllib.error.HTTPError("http://svc", 400, "bad", {}, BytesIO(b'{"error": "Text is required"}'))
        with patch.object(self.client.opener, 'open', side_effect=error):
            with self.assertRaises(ServiceError):
                self.client.classify("", DEFAULT_DESTINATIONS)

    def test_unreachable(self):
        with patch.object(self.client.opener, 'open', side_effect=urllib.error.URLError("refused")):
            with self.assertRaises(ServiceError):
                self.client.classify("home", DEFAULT_DESTINATIONS)

    def test_invalid_json(self):
        with patch.object(self.client.opener, 'open', return_value=mock_response(b"<html>")):
            with self.assertRaises(ServiceError):
                self.client.classify("home", DEFAULT_DESTINATIONS)

    def test_non_object_body(self):
        with patch.object(self.client.opener, 'open', return_value=mock_response([1, 2])):
            with self.assertRaises(ServiceError):
                self.client.classify("home", DEFAULT_DESTINATIONS)


if __name__ == '__main__':
    unittest.main()
