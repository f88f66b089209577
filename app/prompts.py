"""Prompt templates for suggestion and summary generation."""

SUGGESTIONS_SYSTEM = (
    "You are an expert social work supervisor providing guidance during client sessions. "
    "Be helpful, professional, and focused on client wellbeing."
)

SUGGESTIONS_PROMPT = """You are an AI assistant helping a social worker during a client session. Based on the following conversation transcript, generate helpful suggestions.

Session Type: {scenario}
Recent Conversation:
{conversation}

Please generate 2-3 suggestions that would be helpful for the social worker. For each suggestion, provide:
1. Type: one of "followup_question", "resource", "action_item", or "concern_flag"
2. Content: the actual suggestion text
3. Priority: one of "low", "medium", "high", or "urgent"
4. Context: brief explanation of what triggered this suggestion

Respond in JSON format:
{{
  "suggestions": [
    {{
      "type": "followup_question",
      "content": "Ask about...",
      "priority": "medium",
      "context": "Based on the client mentioning..."
    }}
  ]
}}

Focus on:
- Follow-up questions to gather more information
- Resources that might help the client
- Action items for next steps
- Any concerning statements that need attention

Keep suggestions practical and relevant to social work practice."""

SUMMARY_SYSTEM = (
    "You are an expert social work supervisor creating comprehensive session summaries. "
    "Provide detailed, professional, and actionable summaries that will help with case management "
    "and continuity of care."
)

SUMMARY_PROMPT = """You are creating a comprehensive session summary for a social work case. Analyze the following complete session transcript and provide a detailed summary.

Session Type: {scenario}
Session Duration: {duration_minutes} minutes
Full Transcript:
{transcript}

IMPORTANT: Respond with ONLY the JSON object. Do not include any explanatory text, markdown formatting, or code blocks. Return only the raw JSON.

Provide a comprehensive summary in this exact JSON format:
{{
  "key_topics": ["topic1", "topic2", "topic3"],
  "main_concerns": ["concern1", "concern2"],
  "progress_notes": "Detailed progress notes covering client's current state, changes since last session, and notable developments",
  "next_steps": ["action1", "action2", "action3"],
  "risk_assessment": "Assessment of any risks or safety concerns identified during the session",
  "overall_summary": "A comprehensive 2-3 paragraph summary of the entire session covering key discussion points, client engagement, and outcomes"
}}

Focus on:
- Key topics and themes discussed
- Client's main concerns and presenting issues
- Progress made or challenges encountered
- Specific action items and next steps
- Any risk factors or safety concerns
- Overall assessment of the session

Keep the summary professional, objective, and suitable for case documentation. Ensure confidentiality by focusing on clinical observations rather than personal details.

Return ONLY the JSON object, nothing else."""


def scenario_label(scenario_type: str) -> str:
    return scenario_type.replace("_", " ")
