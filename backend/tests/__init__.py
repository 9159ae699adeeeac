"""
Escape Room Backend Test Suite

Test structure:
- unit/: Test components in isolation with mocks
- integration/: Full games through the dispatcher (marked integration)
- mocks/: Mock content generator for deterministic rooms
"""
