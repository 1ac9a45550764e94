"""Domain layer (pure logic).

- Keep wagering rules, stake calculation and outcome math here.
- Avoid I/O: no DB sessions, no HTTP/FastAPI, no email.
- Randomness and time are passed in as arguments.
"""
