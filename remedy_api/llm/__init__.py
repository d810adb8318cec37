"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Build the remedy prompts and the structured-output tool schema.
- Call the model once and decode its tool call into plain data.
- Map provider failures onto the service error taxonomy.
"""
