"""SDK Onboarding Test Suite

Test organization:
- unit/: Unit tests for individual modules
  - protocol/: Payload validation, transcripts, text rendering
  - steps/: Step list construction and prerequisites
  - registry/: App registry and setup session
  - providers/: Simulated store provider
  - flow/: Turn scheduler and flow controller conversations
  - survey/: Pre-setup survey
  - config/: Configuration loading, logging, session store
  - cli/: Command line subcommands
- integration/: API tests through FastAPI's TestClient
"""
