import asyncio
import unittest

import httpx
import openai

from aura.core.exceptions import ChainExhausted, HardProviderError, TransientProviderError
from aura.services.provider_chain import classify_provider_error, complete
from aura.services.providers import CompletionRequest, MediaPayload, plan_attempts
from tests.fakes import ScriptedCall, StatusError, make_provider

TEXT_REQUEST = CompletionRequest(system_instruction="sys", prompt="hello", json_mode=False)
AUDIO_REQUEST = CompletionRequest(
    system_instruction="sys",
    prompt="listen",
    media=MediaPayload(data=b"\x00\x01", mime_type="audio/webm"),
)


def _openai_error(cls, status_code: int):
    request = httpx.Request("POST", "https://api.example.com/v1/chat/completions")
    return cls("provider said no", response=httpx.Response(status_code, request=request), body=None)


class TestClassifier(unittest.TestCase):
    def test_rate_limit_and_not_found_are_transient(self):
        for exc in (
            StatusError(429),
            StatusError(404),
            Exception("429 RESOURCE_EXHAUSTED: quota exceeded"),
            Exception("models/gemini-x is not found for API version v1beta"),
            _openai_error(openai.RateLimitError, 429),
            _openai_error(openai.NotFoundError, 404),
        ):
            with self.subTest(exc=exc):
                self.assertIsInstance(classify_provider_error(exc), TransientProviderError)

    def test_other_failures_are_hard(self):
        for exc in (
            StatusError(401, "invalid api key"),
            StatusError(401, "User not found."),
            StatusError(403, "quota project not set"),
            StatusError(400, "malformed request"),
            _openai_error(openai.AuthenticationError, 401),
            httpx.ConnectError("connection reset"),
            ValueError("boom"),
        ):
            with self.subTest(exc=exc):
                self.assertIsInstance(classify_provider_error(exc), HardProviderError)

    def test_classified_error_keeps_provider_and_model(self):
        error = classify_provider_error(StatusError(429), provider="gemini", model="gemini-2.5-flash")

        self.assertEqual(error.provider, "gemini")
        self.assertEqual(error.model, "gemini-2.5-flash")


class TestPlanAttempts(unittest.TestCase):
    def test_credential_outer_model_inner(self):
        attempts = plan_attempts(["k1", "k2"], ["m1", "m2"])

        self.assertEqual([(a.slot, a.model) for a in attempts], [(1, "m1"), (1, "m2"), (2, "m1"), (2, "m2")])

    def test_credentials_are_not_in_repr(self):
        attempt = plan_attempts(["super-secret"], ["m1"])[0]

        self.assertNotIn("super-secret", repr(attempt))


class TestComplete(unittest.IsolatedAsyncioTestCase):
    async def test_first_success_wins(self):
        primary = ScriptedCall(default="hi there")
        secondary = ScriptedCall(default="unused")
        chain = [make_provider("primary", primary), make_provider("secondary", secondary)]

        completion = await complete(chain, TEXT_REQUEST)

        self.assertEqual(completion.text, "hi there")
        self.assertEqual(completion.provider, "primary")
        self.assertEqual(secondary.calls, [])

    async def test_transient_error_moves_to_next_model_same_key(self):
        primary = ScriptedCall({(1, "m1"): StatusError(429), (1, "m2"): "from m2"})
        chain = [make_provider("primary", primary, keys=("k1", "k2"), models=("m1", "m2"))]

        completion = await complete(chain, TEXT_REQUEST)

        self.assertEqual(completion.model, "m2")
        self.assertEqual(primary.calls, [(1, "m1"), (1, "m2")])

    async def test_hard_error_drops_the_rest_of_that_key(self):
        primary = ScriptedCall({(1, "m1"): StatusError(401), (2, "m1"): "from key 2"})
        chain = [make_provider("primary", primary, keys=("k1", "k2"), models=("m1", "m2"))]

        completion = await complete(chain, TEXT_REQUEST)

        self.assertEqual(completion.text, "from key 2")
        self.assertEqual(primary.calls, [(1, "m1"), (2, "m1")])

    async def test_unauthorized_key_is_dropped_despite_not_found_wording(self):
        primary = ScriptedCall(default=StatusError(401, "API key not found"))
        backup = ScriptedCall(default="backup")
        chain = [
            make_provider("primary", primary, models=("m1", "m2", "m3")),
            make_provider("backup", backup),
        ]

        completion = await complete(chain, TEXT_REQUEST)

        self.assertEqual(completion.provider, "backup")
        self.assertEqual(primary.calls, [(1, "m1")])

    async def test_falls_through_to_next_provider(self):
        primary = ScriptedCall(default=StatusError(429))
        secondary = ScriptedCall(default="secondary answer")
        chain = [
            make_provider("primary", primary, keys=("k1", "k2"), models=("m1", "m2")),
            make_provider("secondary", secondary),
        ]

        completion = await complete(chain, TEXT_REQUEST)

        self.assertEqual(completion.provider, "secondary")
        self.assertEqual(len(primary.calls), 4)

    async def test_empty_completion_counts_as_failure(self):
        primary = ScriptedCall(default="   ")
        secondary = ScriptedCall(default="real answer")
        chain = [make_provider("primary", primary), make_provider("secondary", secondary)]

        completion = await complete(chain, TEXT_REQUEST)

        self.assertEqual(completion.text, "real answer")

    async def test_exhaustion_raises_with_failure_log(self):
        chain = [
            make_provider("primary", ScriptedCall(default=StatusError(429)), models=("m1", "m2")),
            make_provider("secondary", ScriptedCall(default=StatusError(500))),
            make_provider("tertiary", ScriptedCall(default=httpx.ReadTimeout("timed out"))),
        ]

        with self.assertRaises(ChainExhausted) as ctx:
            await complete(chain, TEXT_REQUEST)

        self.assertEqual(len(ctx.exception.failures), 4)
        self.assertTrue(ctx.exception.failures[0].startswith("primary/m1"))
        self.assertEqual(ctx.exception.status_code, 503)

    async def test_no_providers_is_exhaustion(self):
        with self.assertRaises(ChainExhausted) as ctx:
            await complete([], TEXT_REQUEST)

        self.assertEqual(ctx.exception.failures, [])
        self.assertEqual(ctx.exception.message, "No completion providers configured")

    async def test_media_requests_skip_text_only_providers(self):
        text_only = ScriptedCall(default="should not be called")
        multimodal = ScriptedCall(default='{"goals": [], "transcription": ""}')
        chain = [make_provider("text", text_only), make_provider("vision", multimodal, multimodal=True)]

        completion = await complete(chain, AUDIO_REQUEST)

        self.assertEqual(completion.provider, "vision")
        self.assertEqual(text_only.calls, [])
        self.assertIs(multimodal.requests[0].media, AUDIO_REQUEST.media)

    async def test_concurrent_calls_are_independent(self):
        async def slow_echo(attempt, request):
            await asyncio.sleep(0.01 if request.prompt == "first" else 0)
            return f"echo {request.prompt}"

        chain = [make_provider("primary", slow_echo)]
        first, second = await asyncio.gather(
            complete(chain, CompletionRequest("sys", "first", json_mode=False)),
            complete(chain, CompletionRequest("sys", "second", json_mode=False)),
        )

        self.assertEqual(first.text, "echo first")
        self.assertEqual(second.text, "echo second")


if __name__ == "__main__":
    unittest.main()
