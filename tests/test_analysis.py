"""
tests/test_analysis.py
Author: Yang
Description: Analysis path suite — prompt building, vision provider clients,
             chart analyzer, LangGraph analysis graph and the CLI.
             All provider calls (requests, Anthropic SDK) are mocked.
             Run: python tests/test_analysis.py
"""

import io
import os
import sys
import json
import tempfile
import unittest
from contextlib import redirect_stdout, redirect_stderr
from unittest.mock import patch, MagicMock

# ── Environment setup (must precede all project imports) ──────────────────────
_TMP = tempfile.mkdtemp(prefix="setup-memory-analysis-")
os.environ.update({
    "OPENAI_API_KEY":    "",
    "GEMINI_API_KEY":    "",
    "ANTHROPIC_API_KEY": "",
    "AI_PROVIDER":       "openai",
    "AI_MODEL":          "gpt-4o",
    "AI_MAX_TOKENS":     "1000",
    "STORE_BACKEND":     "memory",
    "JOURNAL_FILE":      os.path.join(_TMP, "MEMORY.md"),
    "LOG_FILE":          os.path.join(_TMP, "agent.log"),
})
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from ai.base import VisionAPIError
from memory.stats_store import TradingMemory
from tools.kv_store import InMemoryStore
from tools.settings_store import SettingsStore

PASS = FAIL = 0

def ok(name: str, passed: bool, note: str = "") -> None:
    global PASS, FAIL
    suffix = f"  [{note}]" if note else ""
    if passed:
        PASS += 1
        print(f"  ✅  {name}{suffix}")
    else:
        FAIL += 1
        print(f"  ❌  {name}{suffix}")


_POOR_HISTORY = {
    "Head And Shoulders": {"wins": 1, "losses": 4, "breakEven": 0,
                           "commonMistakes": ["Entered too early"]},
}

_REPLY = "SETUP_TYPE: Head and Shoulders\n\n📊 ACTION: SELL below the neckline."


def _http_response(status: int, body: dict) -> MagicMock:
    resp = MagicMock()
    resp.ok          = 200 <= status < 300
    resp.status_code = status
    resp.json.return_value = body
    return resp


def _chart_file() -> str:
    path = os.path.join(_TMP, "chart.png")
    with open(path, "wb") as f:
        f.write(b"\x89PNG\r\n\x1a\nchart")
    return path


def _configured_store() -> InMemoryStore:
    store = InMemoryStore()
    SettingsStore(store).set_api_key("sk-test-abcdefghijklmnop")
    return store


# ══════════════════════════════════════════════════════════════════════════════
# AI: prompt
# ══════════════════════════════════════════════════════════════════════════════
class TestPrompt(unittest.TestCase):
    def test_prompt_without_memory(self):
        from ai.prompt import build_prompt
        p = build_prompt("BTC/USD", "4H")
        ok("prompt asks for SETUP_TYPE line", "SETUP_TYPE:" in p)
        self.assertIn("Asset: BTC/USD", p)
        self.assertIn("Timeframe: 4H", p)
        self.assertIn("Source: Chart", p)
        self.assertNotIn("TRADING HISTORY", p)

    def test_prompt_with_memory(self):
        from ai.prompt import build_prompt
        p = build_prompt("ETH/USD", "1H", _POOR_HISTORY, source_title="eth.png")
        ok("memory line in prompt",
           "- Head And Shoulders: 1 wins / 4 losses (20.0% win rate)" in p)
        self.assertIn("- Head And Shoulders: 1 wins / 4 losses (20.0% win rate)", p)
        self.assertIn("Common mistakes: Entered too early", p)
        self.assertIn("win rate < 40%", p)
        self.assertIn("Source: eth.png", p)
        self.assertTrue(p.rstrip().endswith("Analyse now."))


# ══════════════════════════════════════════════════════════════════════════════
# AI: provider clients
# ══════════════════════════════════════════════════════════════════════════════
class TestVisionClients(unittest.TestCase):
    def test_openai_success(self):
        from ai.base import call_vision
        body = {"choices": [{"message": {"content": _REPLY}}]}
        with patch("requests.post", return_value=_http_response(200, body)) as mp:
            text = call_vision("openai", "sk-x", "gpt-4o", "prompt", "aGVsbG8=", 500, 0.7)
            ok("openai returns message content", text == _REPLY)
            self.assertEqual(text, _REPLY)
            kwargs = mp.call_args.kwargs
            self.assertEqual(kwargs["headers"]["Authorization"], "Bearer sk-x")
            image = kwargs["json"]["messages"][0]["content"][1]["image_url"]["url"]
            self.assertEqual(image, "data:image/png;base64,aGVsbG8=")
            self.assertEqual(kwargs["json"]["max_tokens"], 500)

    def test_openai_http_error(self):
        from ai.base import call_vision
        resp = _http_response(401, {"error": {"message": "bad key"}})
        with patch("requests.post", return_value=resp):
            with self.assertRaises(VisionAPIError) as ctx:
                call_vision("openai", "sk-x", "gpt-4o", "p", "img", 500, 0.7)
            self.assertIn("401", str(ctx.exception))
            self.assertIn("bad key", str(ctx.exception))

    def test_openai_malformed_body(self):
        from ai.base import call_vision
        with patch("requests.post", return_value=_http_response(200, {"choices": []})):
            with self.assertRaises(VisionAPIError):
                call_vision("openai", "sk-x", "gpt-4o", "p", "img", 500, 0.7)

    def test_gemini_success(self):
        from ai.base import call_vision
        body = {"candidates": [{"content": {"parts": [{"text": _REPLY}]}}]}
        with patch("requests.post", return_value=_http_response(200, body)) as mp:
            text = call_vision("gemini", "AIza", "gemini-2.5-flash", "p", "img", 800, 0.2)
            self.assertEqual(text, _REPLY)
            self.assertIn("gemini-2.5-flash:generateContent", mp.call_args.args[0])
            self.assertEqual(mp.call_args.kwargs["params"], {"key": "AIza"})
            self.assertEqual(mp.call_args.kwargs["json"]["generationConfig"]["maxOutputTokens"], 800)

    def test_gemini_quota_hint(self):
        from ai.base import call_vision
        resp = _http_response(429, {"error": {"message": "RESOURCE_EXHAUSTED"}})
        with patch("requests.post", return_value=resp):
            with self.assertRaises(VisionAPIError) as ctx:
                call_vision("gemini", "AIza", "gemini-2.5-pro", "p", "img", 800, 0.2)
            ok("429 carries quota hint", "Quota exceeded" in str(ctx.exception))
            self.assertIn("Quota exceeded", str(ctx.exception))
            self.assertIn("RESOURCE_EXHAUSTED", str(ctx.exception))

    def test_anthropic_success(self):
        from ai.base import call_vision
        with patch("anthropic.Anthropic") as ma:
            ma.return_value.messages.create.return_value.content = [MagicMock(text=_REPLY)]
            text = call_vision("anthropic", "sk-ant-x", "claude-3-haiku-20240307",
                               "p", "img", 300, 0.5)
            self.assertEqual(text, _REPLY)
            kwargs = ma.return_value.messages.create.call_args.kwargs
            self.assertEqual(kwargs["model"], "claude-3-haiku-20240307")
            self.assertEqual(kwargs["messages"][0]["content"][0]["source"]["data"], "img")

    def test_anthropic_empty_content(self):
        from ai.base import call_vision
        with patch("anthropic.Anthropic") as ma:
            ma.return_value.messages.create.return_value.content = []
            with self.assertRaises(VisionAPIError):
                call_vision("anthropic", "sk-ant-x", "m", "p", "img", 300, 0.5)

    def test_network_error_wrapped(self):
        import requests
        from ai.base import call_vision
        with patch("requests.post", side_effect=requests.ConnectionError("down")):
            with self.assertRaises(VisionAPIError):
                call_vision("openai", "sk-x", "gpt-4o", "p", "img", 500, 0.7)

    def test_unknown_provider(self):
        from ai.base import call_vision
        with self.assertRaises(VisionAPIError):
            call_vision("mistral", "k", "m", "p", "img", 500, 0.7)


# ══════════════════════════════════════════════════════════════════════════════
# AI: chart analyzer
# ══════════════════════════════════════════════════════════════════════════════
class TestChartAnalyzer(unittest.TestCase):
    def _settings(self, **overrides):
        cfg = {"provider": "openai", "apiKey": "sk-x", "model": "gpt-4o",
               "maxTokens": 1000, "temperature": 0.7}
        cfg.update(overrides)
        return cfg

    def test_warning_from_history(self):
        from ai.chart_analyzer import analyze_chart
        with patch("ai.chart_analyzer.call_vision", return_value=_REPLY) as mv:
            r = analyze_chart("img", "BTC/USD", "1H", _POOR_HISTORY, self._settings())
            ok("analyzer flags poor setup", r["warning"] is not None)
            self.assertEqual(r["setupType"], "Head and Shoulders")
            self.assertEqual(r["fullAnalysis"], "📊 ACTION: SELL below the neckline.")
            self.assertIn("1 wins vs 4 losses", r["warning"])
            self.assertIn("1 wins / 4 losses", mv.call_args.kwargs["prompt"])

    def test_missing_key(self):
        from ai.chart_analyzer import analyze_chart
        with patch("ai.chart_analyzer.call_vision") as mv:
            with self.assertRaises(VisionAPIError):
                analyze_chart("img", "BTC/USD", "1H", {}, self._settings(apiKey=""))
            self.assertFalse(mv.called)

    def test_api_error_propagates(self):
        from ai.chart_analyzer import analyze_chart
        with patch("ai.chart_analyzer.call_vision", side_effect=VisionAPIError("boom")):
            with self.assertRaises(VisionAPIError):
                analyze_chart("img", "BTC/USD", "1H", {}, self._settings())


# ══════════════════════════════════════════════════════════════════════════════
# GRAPH
# ══════════════════════════════════════════════════════════════════════════════
class TestAnalysisGraph(unittest.TestCase):
    def test_full_run(self):
        from graph.nodes import run_graph
        store  = _configured_store()
        memory = TradingMemory(store)
        memory.import_stats(json.dumps({
            "Head And Shoulders": {"wins": 1, "losses": 4, "breakEven": 0,
                                   "trades": [], "commonMistakes": []}}))
        with patch("ai.chart_analyzer.call_vision", return_value=_REPLY):
            final = run_graph(memory, SettingsStore(store), _chart_file(), "BTC/USD", "1H")
        ok("graph completes without abort", not final["abort_reason"], final["abort_reason"])
        self.assertEqual(final["abort_reason"], "")
        self.assertEqual(final["chart"]["source_title"], "chart.png")
        self.assertEqual(final["analysis"]["setupType"], "Head and Shoulders")
        self.assertIsNotNone(final["analysis"]["warning"])

    def test_missing_image_aborts(self):
        from graph.nodes import run_graph
        store = _configured_store()
        with patch("ai.chart_analyzer.call_vision") as mv:
            final = run_graph(TradingMemory(store), SettingsStore(store),
                              os.path.join(_TMP, "nope.png"), "BTC/USD", "1H")
            self.assertFalse(mv.called)
        self.assertTrue(final["abort_reason"].startswith("Step 1"))

    def test_unconfigured_key_aborts(self):
        from graph.nodes import run_graph
        store = InMemoryStore()
        final = run_graph(TradingMemory(store), SettingsStore(store),
                          _chart_file(), "BTC/USD", "1H")
        ok("no API key aborts at step 2", final["abort_reason"].startswith("Step 2"))
        self.assertIn("API key not configured", final["abort_reason"])


# ══════════════════════════════════════════════════════════════════════════════
# CLI
# ══════════════════════════════════════════════════════════════════════════════
class TestCLI(unittest.TestCase):
    def _run(self, argv, store):
        from main import main
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = main(argv, store=store)
        return code, out.getvalue(), err.getvalue()

    def test_log_then_stats(self):
        store = InMemoryStore()
        code, out, _ = self._run(["log", "bull flag", "loss", "--note", "pure fomo"], store)
        self.assertEqual(code, 0)
        self.assertIn("Common mistakes: FOMO entry", out)
        self._run(["log", "Bull Flag", "win"], store)
        code, out, _ = self._run(["stats"], store)
        ok("stats shows the logged setup", "Bull Flag" in out)
        self.assertIn("Bull Flag", out)
        self.assertIn("50.0%", out)

    def test_invalid_outcome_exit_code(self):
        code, _, err = self._run(["log", "Bull Flag", "draw"], InMemoryStore())
        self.assertEqual(code, 1)
        self.assertIn("unknown outcome", err)

    def test_export_import_files(self):
        store = InMemoryStore()
        self._run(["log", "Wedge", "win"], store)
        path = os.path.join(_TMP, "backup.json")
        self.assertEqual(self._run(["export", path], store)[0], 0)

        fresh = InMemoryStore()
        self.assertEqual(self._run(["import", path], fresh)[0], 0)
        self.assertEqual(TradingMemory(fresh).get_all(), TradingMemory(store).get_all())

    def test_import_bad_file(self):
        path = os.path.join(_TMP, "bad.json")
        with open(path, "w", encoding="utf-8") as f:
            f.write("not json")
        code, _, err = self._run(["import", path], InMemoryStore())
        self.assertEqual(code, 1)
        self.assertIn("Invalid JSON format", err)
        self.assertEqual(self._run(["import", os.path.join(_TMP, "missing.json")],
                                   InMemoryStore())[0], 1)

    def test_clear_needs_confirmation(self):
        store = InMemoryStore()
        self._run(["log", "Wedge", "win"], store)
        self.assertEqual(self._run(["clear"], store)[0], 1)
        self.assertIn("Wedge", TradingMemory(store).get_all())
        self.assertEqual(self._run(["clear", "--yes"], store)[0], 0)
        self.assertEqual(TradingMemory(store).get_all(), {})

    def test_config_and_analyze(self):
        store = InMemoryStore()
        code, out, _ = self._run(["config", "--api-key", "sk-test-abcdefghijklmnop"], store)
        self.assertEqual(code, 0)
        self.assertIn("sk-test", out)
        self.assertNotIn("abcdefghijklmnop", out)
        with patch("ai.chart_analyzer.call_vision", return_value=_REPLY):
            code, out, _ = self._run(["analyze", _chart_file()], store)
        self.assertEqual(code, 0)
        self.assertIn("SETUP: Head and Shoulders", out)

    def test_config_rejects_bad_key(self):
        code, _, err = self._run(["config", "--api-key", "nope"], InMemoryStore())
        self.assertEqual(code, 1)
        self.assertIn("should start with", err)


# ══════════════════════════════════════════════════════════════════════════════
# RUNNER
# ══════════════════════════════════════════════════════════════════════════════
if __name__ == "__main__":
    suites = [
        ("ai.prompt",         TestPrompt),
        ("ai.base",           TestVisionClients),
        ("ai.chart_analyzer", TestChartAnalyzer),
        ("graph",             TestAnalysisGraph),
        ("cli",               TestCLI),
    ]

    print("\n" + "=" * 68)
    print("   SETUP MEMORY — Analysis Test Suite")
    print("=" * 68)

    loader = unittest.TestLoader()
    for label, cls in suites:
        print(f"\n── {label} {'─' * (52 - len(label))}")
        for test in loader.loadTestsFromTestCase(cls):
            try:
                test.debug()
            except AssertionError as e:
                ok(str(test).split()[0], False, str(e)[:80])
            except Exception as e:
                ok(str(test).split()[0], False, f"ERR: {str(e)[:80]}")

    total = PASS + FAIL
    print("\n" + "=" * 68)
    if FAIL == 0:
        print(f"  ✅  ALL {total} TESTS PASSED")
    else:
        print(f"  ✅  {PASS}/{total} passed   ❌  {FAIL} failed")
    print("=" * 68 + "\n")
