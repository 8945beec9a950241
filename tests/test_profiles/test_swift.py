"""Swift profile: every rule blocks."""

from __future__ import annotations

import pytest

from patternguard import Decision, evaluate


def _ids(result):
    return result.rule_ids


class TestForceUnwrap:
    def test_single_force_unwrap_denies(self, swift):
        result = evaluate("Foo.swift", "let x = value!", swift)
        assert _ids(result) == ["force-unwrap"]
        assert result.decision == Decision.DENY

    def test_guard_let_suppresses_whole_file(self, swift):
        content = "guard let y = value else { return }\nlet x = value!"
        result = evaluate("Foo.swift", content, swift)
        assert result.findings == ()
        assert result.decision == Decision.ALLOW
        assert result.message is None

    def test_if_let_anywhere_suppresses(self, swift):
        content = "let a = dict[\"k\"]!\n\nfunc f() {\n    if let b = opt { print(b) }\n}"
        assert evaluate("Foo.swift", content, swift).findings == ()

    @pytest.mark.parametrize(
        "content",
        [
            "let y = items[0]!",
            "let y = compute()!.value",
            "let url = URL(string: s)!",
        ],
    )
    def test_subscript_and_call_results(self, swift, content):
        assert _ids(evaluate("A.swift", content, swift)) == ["force-unwrap"]

    @pytest.mark.parametrize("content", ["if a != b { }", "if a!=b { }", "let ok = !flag"])
    def test_not_equals_and_negation_ignored(self, swift, content):
        assert evaluate("A.swift", content, swift).findings == ()


class TestSecrets:
    def test_hardcoded_api_key(self, swift):
        result = evaluate("Config.swift", 'let apiKey = "abcdefgh12345"', swift)
        assert _ids(result) == ["hardcoded-secret"]
        assert result.denied

    def test_colon_assignment(self, swift):
        result = evaluate("Config.swift", 'static let PASSWORD: "correcthorse"', swift)
        assert _ids(result) == ["hardcoded-secret"]

    def test_short_value_ignored(self, swift):
        assert evaluate("Config.swift", 'let password = "short"', swift).findings == ()

    def test_bearer_token(self, swift):
        content = 'request.setValue("Bearer abcdefghijklmnopqrstuvwxyz", forHTTPHeaderField: "Authorization")'
        assert _ids(evaluate("Api.swift", content, swift)) == ["bearer-token"]

    def test_api_key_shaped_literal(self, swift):
        content = 'let k = "sk-abcdefghijklmnopqrstuvwx"'
        assert _ids(evaluate("Api.swift", content, swift)) == ["api-key-literal"]

    def test_api_key_shaped_literal_too_short(self, swift):
        assert evaluate("Api.swift", 'let k = "sk-abc"', swift).findings == ()


class TestConcurrency:
    def test_main_sync(self, swift):
        content = "DispatchQueue.main.sync {\n    self.reload()\n}"
        assert _ids(evaluate("View.swift", content, swift)) == ["main-thread-sync"]

    def test_main_async_is_fine(self, swift):
        content = "DispatchQueue.main.async {\n    self.reload()\n}"
        assert evaluate("View.swift", content, swift).findings == ()

    def test_unchecked_sendable_without_lock(self, swift):
        content = "final class Cache: @unchecked Sendable {\n    var items: [String] = []\n}"
        assert _ids(evaluate("Cache.swift", content, swift)) == ["unchecked-sendable"]

    @pytest.mark.parametrize("sync", ["private let lock = NSLock()", "private let q = DispatchQueue(label: \"c\")"])
    def test_unchecked_sendable_with_synchronization(self, swift, sync):
        content = f"final class Cache: @unchecked Sendable {{\n    {sync}\n    var items: [String] = []\n}}"
        assert evaluate("Cache.swift", content, swift).findings == ()


class TestMainActor:
    def test_observable_object_without_main_actor(self, swift):
        content = "class ViewModel: ObservableObject {\n    @Published var name = \"\"\n}"
        assert _ids(evaluate("ViewModel.swift", content, swift)) == ["missing-main-actor"]

    def test_main_actor_on_same_line(self, swift):
        content = "@MainActor final class ViewModel: ObservableObject {\n    @Published var name = \"\"\n}"
        assert evaluate("ViewModel.swift", content, swift).findings == ()

    def test_main_actor_on_previous_line_still_fires(self, swift):
        # Matching is line based: the annotation must share the line with `class`.
        content = "@MainActor\nclass ViewModel: ObservableObject {\n    @Published var name = \"\"\n}"
        assert _ids(evaluate("ViewModel.swift", content, swift)) == ["missing-main-actor"]

    def test_no_published_properties(self, swift):
        content = "class ViewModel: ObservableObject {\n    var name = \"\"\n}"
        assert evaluate("ViewModel.swift", content, swift).findings == ()


class TestReport:
    def test_findings_in_rule_order_with_trailer(self, swift):
        content = "DispatchQueue.main.sync { }\nlet x = value!"
        result = evaluate("App.swift", content, swift)
        assert _ids(result) == ["force-unwrap", "main-thread-sync"]
        assert result.message.startswith("UNSAFE SWIFT PATTERNS DETECTED in App.swift:\n\n1. Force unwrap")
        assert "\n2. DispatchQueue.main.sync detected." in result.message
        assert result.message.endswith("- UI classes: Add @MainActor to ObservableObject classes")

    def test_other_extensions_ignored(self, swift):
        assert evaluate("notes.swift.txt", "let x = value!", swift).findings == ()
