import errno
import socket
import unittest

import httplib2
from google.auth import exceptions as google_auth_exceptions
from googleapiclient.errors import HttpError

from reminder_backend.errors import (
    AuthenticationError,
    InternalError,
    NotFoundError,
    ServiceUnavailable,
    ValidationError,
    classify_remote_error,
)


def http_error(status: int) -> HttpError:
    return HttpError(httplib2.Response({"status": status}), b"")


class ClassifyRemoteErrorTests(unittest.TestCase):
    def test_connection_failures_are_unavailable(self):
        for exc in (
            socket.timeout("timed out"),
            ConnectionRefusedError("refused"),
            OSError(errno.ETIMEDOUT, "timed out"),
            httplib2.ServerNotFoundError("no dns"),
        ):
            with self.subTest(exc=exc):
                self.assertIsInstance(classify_remote_error(exc), ServiceUnavailable)

    def test_http_statuses(self):
        self.assertIsInstance(classify_remote_error(http_error(404)), NotFoundError)
        self.assertEqual(classify_remote_error(http_error(404)).message, "Sheet not found")
        self.assertIsInstance(classify_remote_error(http_error(403)), AuthenticationError)
        self.assertIsInstance(classify_remote_error(http_error(503)), ServiceUnavailable)
        self.assertIsInstance(classify_remote_error(http_error(400)), InternalError)

    def test_auth_failures(self):
        self.assertIsInstance(
            classify_remote_error(google_auth_exceptions.RefreshError("invalid_grant")),
            AuthenticationError,
        )
        self.assertIsInstance(
            classify_remote_error(RuntimeError("Authentication failed")), AuthenticationError
        )

    def test_fallback_uses_operation_message(self):
        error = classify_remote_error(RuntimeError("boom"), "Failed to fetch thoughts")
        self.assertIsInstance(error, InternalError)
        self.assertEqual(error.message, "Failed to fetch thoughts")
        self.assertEqual(error.status_code, 500)
        self.assertEqual(classify_remote_error(RuntimeError("boom")).message, "Internal server error")

    def test_domain_errors_pass_through(self):
        original = ValidationError("Content is required")
        self.assertIs(classify_remote_error(original), original)


if __name__ == "__main__":
    unittest.main()
