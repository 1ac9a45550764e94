import json
import unittest

import httpx

from lootlab.exceptions import EmailDispatchError
from lootlab.services.email_dispatch import RESEND_API_URL, ResendMailer


class ResendMailerTests(unittest.IsolatedAsyncioTestCase):
    def mailer_with(self, handler, api_key="re_test") -> ResendMailer:
        self.requests = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(record))
        self.addAsyncCleanup(client.aclose)
        return ResendMailer(api_key=api_key, from_email="noreply@example.com", client=client)

    async def test_posts_the_message(self):
        mailer = self.mailer_with(lambda request: httpx.Response(200, json={"id": "1"}))

        await mailer.send("a@x.io", "Your Verification Code", "<p>123456</p>")

        self.assertEqual(len(self.requests), 1)
        request = self.requests[0]
        self.assertEqual(str(request.url), RESEND_API_URL)
        self.assertEqual(request.headers["authorization"], "Bearer re_test")
        self.assertEqual(
            json.loads(request.content),
            {
                "from": "noreply@example.com",
                "to": ["a@x.io"],
                "subject": "Your Verification Code",
                "html": "<p>123456</p>",
            },
        )

    async def test_missing_api_key(self):
        mailer = self.mailer_with(lambda request: httpx.Response(200), api_key="")

        self.assertFalse(mailer.is_enabled())
        with self.assertRaisesRegex(EmailDispatchError, "not configured"):
            await mailer.send("a@x.io", "s", "b")
        self.assertEqual(self.requests, [])

    async def test_error_reply(self):
        mailer = self.mailer_with(lambda request: httpx.Response(500, text="boom"))

        with self.assertRaises(EmailDispatchError) as ctx:
            await mailer.send("a@x.io", "s", "b")
        self.assertEqual(ctx.exception.message, "Failed to send verification email")
        self.assertEqual(ctx.exception.status_code, 502)

    async def test_unverified_domain_reply(self):
        mailer = self.mailer_with(
            lambda request: httpx.Response(
                403, json={"message": "You can only send testing emails. Please verify a domain."}
            )
        )

        with self.assertRaisesRegex(EmailDispatchError, "resend.com/domains"):
            await mailer.send("a@x.io", "s", "b")

    async def test_transport_failure(self):
        def fail(request):
            raise httpx.ConnectError("unreachable", request=request)

        mailer = self.mailer_with(fail)

        with self.assertRaises(EmailDispatchError):
            await mailer.send("a@x.io", "s", "b")


if __name__ == "__main__":
    unittest.main()
