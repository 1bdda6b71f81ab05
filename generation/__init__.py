"""
Teaching Document Generation Pipeline
generation/

Steps:
1. Form rules       : caller-side business checks (question totals)
2. Prompt builders  : admin / soal / ecourse / suggestions
3. Retry Policy     : bounded exponential backoff on transient errors
4. GPT client       : explicit OpenAI handle, credential read per call
5. Response Validator: raw text → ordered section records (never raises)
6. Orchestrator     : ids, header/signature splice, slide wrapping, media
"""
