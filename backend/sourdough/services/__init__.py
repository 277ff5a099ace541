"""
Service Layer - Business Orchestration

Services combine repositories, domain rules and remote providers
(Stripe, Resend). Routers call services; services never import routers.
"""
