"""
設問生成・結果分析のプロンプト組み立て
"""

import json
import re
from typing import Any, Optional

LANGUAGE_NAMES = {"zh": "Simplified Chinese", "en": "English", "ja": "Japanese"}

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

QUESTION_SYSTEM_PROMPT = (
    "You are a professional MBTI assessment designer. "
    "You write personalised Likert-scale questions and always reply with complete JSON."
)
ANALYSIS_SYSTEM_PROMPT = (
    "You are an experienced MBTI analyst. You combine a person's background with "
    "their test scores to write warm, constructive and concrete reports."
)


def _language(locale: str) -> str:
    return LANGUAGE_NAMES.get(locale, "English")


def _profile_lines(profile: dict[str, Any]) -> str:
    fields = (
        ("Name", "name"),
        ("Age", "age"),
        ("Gender", "gender"),
        ("Occupation", "occupation"),
        ("Education", "education"),
        ("Interests", "interests"),
        ("Work style", "workStyle"),
        ("Social preference", "socialPreference"),
    )
    return "\n".join(
        f"- {label}: {profile.get(key) or 'not provided'}" for label, key in fields
    )


def build_question_messages(
    profile: dict[str, Any], question_count: int, locale: str
) -> list[dict[str, str]]:
    prompt = f"""Generate {question_count} personalised MBTI test questions for this person.

Profile:
{_profile_lines(profile)}

Requirements:
1. Cover the four dimensions (EI, SN, TF, JP) evenly.
2. Fit the questions to the person's age, occupation and daily life.
3. Each question is answered on a 5-point Likert scale (1 = strongly disagree, 5 = strongly agree).
4. Write the question text in {_language(locale)}.

Reply with JSON only:
{{"questions": [{{"id": "ai_q1", "text": "...", "dimension": "EI", "agree": "E"}}]}}"""
    return [
        {"role": "system", "content": QUESTION_SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]


def _score_lines(mbti_result: dict[str, Any]) -> str:
    scores = mbti_result.get("scores") or {}
    lines = []
    for dimension in ("EI", "SN", "TF", "JP"):
        score = scores.get(dimension) or {}
        lines.append(
            f"- {dimension[0]} vs {dimension[1]}: "
            f"{score.get('percentFirst', 50)}% vs {score.get('percentSecond', 50)}%"
        )
    return "\n".join(lines)


def build_analysis_messages(
    profile: dict[str, Any], mbti_result: dict[str, Any], locale: str
) -> list[dict[str, str]]:
    prompt = f"""Write a personalised MBTI analysis report.

Profile:
{_profile_lines(profile)}

Result:
- Type: {mbti_result.get('type')}
{_score_lines(mbti_result)}

Requirements:
1. Relate the type's traits to the person's background.
2. Comment on how balanced each dimension is.
3. Give concrete advice for career, personal growth and relationships.
4. Keep it to about 300 words, written in {_language(locale)}.

Reply with JSON only:
{{"analysis": {{"summary": "", "strengths": [], "challenges": [], "recommendations": [],
"careerGuidance": "", "personalGrowth": "", "relationships": ""}}}}"""
    return [
        {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]


def extract_json(text: str) -> Optional[dict[str, Any]]:
    """
    AI応答からJSONオブジェクトを取り出す

    前後に説明文やコードフェンスが付いていても最初の { から最後の } までを試す。
    """
    for candidate in (text, *_JSON_OBJECT.findall(text)):
        try:
            parsed = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None
