"""Services package. All business logic lives here, never in routers.

Files:
  offline_queue.py     durable staging queue for voice recordings
  sync_manager.py      sequential queue drain with exponential backoff
  voice_uploader.py    httpx uploader used by the sync manager
  voice_log.py         server side of the voice-log upload
  query_parser.py      natural-language text to ParsedQuery
  query_executor.py    ParsedQuery to SQL plus the contains/between pass
  rate_limiter.py      fixed-window request limiter and presets
  ai_usage.py          per-org daily AI budget
  ai_providers.py      Gemini/Claude/OpenAI selection and fallback
  assistant.py         assistant endpoint logic
  daily_log.py         daily logs, visibility and summaries
  equipment.py         inventory, check-out and return
  equipment_client.py  async HTTP client for /api/equipment
  invoice.py           invoice totals, payments, voiding, stats
  payments.py          processor fee and message helpers
  project.py           project CRUD and profitability
  profitability.py     margin and RAG status
  auth.py              login and sign-up

Rule: routers call services, services call repositories, repositories call the DB.
      No FastAPI imports in services.
"""
