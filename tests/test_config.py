import unittest
from unittest.mock import patch

from pydantic import ValidationError

from aura.core.config import Settings

UNSET_KEYS = dict(
    GEMINI_API_KEY=None,
    GEMINI_API_KEY_2=None,
    GEMINI_API_KEY_3=None,
    DEEPSEEK_API_KEY=None,
    OPENROUTER_API_KEY_1=None,
    OPENROUTER_API_KEY_2=None,
)


class TestSettings(unittest.TestCase):
    def test_no_credentials_is_a_valid_configuration(self):
        settings = Settings(_env_file=None, **UNSET_KEYS)

        self.assertEqual(settings.gemini_api_keys, [])
        self.assertEqual(settings.deepseek_api_keys, [])
        self.assertEqual(settings.openrouter_api_keys, [])
        self.assertEqual(settings.CHAT_HISTORY_WINDOW, 8)

    def test_credential_slots_keep_order_and_skip_blanks(self):
        settings = Settings(
            _env_file=None,
            **{**UNSET_KEYS, "GEMINI_API_KEY": " first ", "GEMINI_API_KEY_2": "", "GEMINI_API_KEY_3": "third"},
        )

        self.assertEqual(settings.gemini_api_keys, ["first", "third"])

    def test_model_list_accepts_csv_and_json(self):
        self.assertEqual(Settings(_env_file=None, GEMINI_MODELS="a, b,,c").GEMINI_MODELS, ["a", "b", "c"])
        self.assertEqual(Settings(_env_file=None, GEMINI_MODELS='["x", "y"]').GEMINI_MODELS, ["x", "y"])

    def test_models_from_environment(self):
        with patch.dict("os.environ", {"GEMINI_MODELS": "env-fast,env-smart"}):
            self.assertEqual(Settings(_env_file=None).GEMINI_MODELS, ["env-fast", "env-smart"])

    def test_negative_history_window_is_rejected(self):
        with self.assertRaises(ValidationError):
            Settings(_env_file=None, CHAT_HISTORY_WINDOW=-1)


if __name__ == "__main__":
    unittest.main()
