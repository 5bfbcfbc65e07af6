import json

from app.models.profile import PhotoAnalysis, UserContext

PHOTO_ANALYSIS_PROMPT = """Analyze this photo of a college student. Provide a JSON response with the following structure:
{
  "description": "Brief physical description",
  "vibe": "Overall vibe/energy (e.g., casual, studious, athletic, creative)",
  "traits": ["trait1", "trait2", "trait3"],
  "interests": ["interest1", "interest2", "interest3"]
}

Be observant, positive, and focus on details that would help create an interesting student profile. \
Consider clothing style, setting, expressions, and any visible interests or hobbies."""

PROFILE_PROMPT_TEMPLATE = """Create a fun, engaging student profile bio based on this analysis:

Photo Analysis: {analysis}
Student Context:
- Major: {major}
- University: {university}
- Classes: {classes}

Generate a JSON response with:
{{
  "bio": "A short, witty, and characteristic bio (2-3 sentences max). Make it fun and authentic, \
like a real student would write. Use humor and personality!",
  "personality_traits": ["trait1", "trait2", "trait3", "trait4"],
  "conversation_starters": [
    "question or topic 1",
    "question or topic 2",
    "question or topic 3"
  ]
}}

Make the bio sound natural and student-like. Incorporate the major and interests in a fun way. \
The conversation starters should be relevant to their major/interests and easy to respond to."""

JSON_ONLY_INSTRUCTION = "IMPORTANT: Return ONLY the JSON object, no markdown formatting or extra text."


def build_profile_prompt(photo_analysis: PhotoAnalysis, user_context: UserContext) -> str:
    return PROFILE_PROMPT_TEMPLATE.format(
        analysis=json.dumps(photo_analysis.model_dump()),
        major=user_context.major or "Unknown",
        university=user_context.university or "Unknown",
        classes=", ".join(user_context.classes) or "None specified",
    )
