"""
プロンプト組み立て・応答解析の単体テスト
"""

from aurora.infrastructure.ai.prompts import (
    build_analysis_messages,
    build_question_messages,
    extract_json,
)


class TestBuildMessages:
    """build_*_messages()のテスト"""

    def test_question_messages(self) -> None:
        """設問数・言語・プロフィールがプロンプトに含まれること"""
        messages = build_question_messages(
            {"name": "Aki", "occupation": "engineer"}, 12, "ja"
        )

        assert [m["role"] for m in messages] == ["system", "user"]
        prompt = messages[1]["content"]
        assert "Generate 12" in prompt
        assert "Japanese" in prompt
        assert "- Occupation: engineer" in prompt
        assert "- Education: not provided" in prompt

    def test_analysis_messages(self) -> None:
        """タイプとスコアがプロンプトに含まれること"""
        result = {
            "type": "INFP",
            "scores": {"EI": {"percentFirst": 30, "percentSecond": 70}},
        }

        messages = build_analysis_messages({}, result, "zh")

        prompt = messages[1]["content"]
        assert "- Type: INFP" in prompt
        assert "E vs I: 30% vs 70%" in prompt
        assert "S vs N: 50% vs 50%" in prompt
        assert "Simplified Chinese" in prompt

    def test_unknown_locale_uses_english(self) -> None:
        """未知のロケールは英語で書かせること"""
        prompt = build_question_messages({}, 5, "fr")[1]["content"]
        assert "English" in prompt


class TestExtractJson:
    """extract_json()のテスト"""

    def test_plain_json(self) -> None:
        """JSONのみの応答"""
        assert extract_json('{"questions": []}') == {"questions": []}

    def test_fenced_json(self) -> None:
        """コードフェンスや説明文に囲まれた応答"""
        text = 'Here you go:\n```json\n{"analysis": {"summary": "ok"}}\n```\nEnjoy!'
        assert extract_json(text) == {"analysis": {"summary": "ok"}}

    def test_no_object(self) -> None:
        """オブジェクトが無ければNone"""
        assert extract_json("[1, 2, 3]") is None
        assert extract_json("no json here") is None
        assert extract_json("{broken") is None
