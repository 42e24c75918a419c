"""서비스 패키지 — 비즈니스 로직 계층.

Service package — Business logic layer.
Services call repositories for DB operations and wrap the external
systems the team procedures touch (Stripe billing, Close.com CRM sync).
"""
