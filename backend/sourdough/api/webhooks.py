"""
Webhooks API Endpoints
Stripe payment events

The raw body is verified against the stripe-signature header before
anything is parsed.
"""
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from typing import Optional

from sourdough.api.deps import get_stripe_service, get_webhook_service
from sourdough.services.stripe_service import StripeService, StripeWebhookService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="stripe-signature"),
    stripe_service: StripeService = Depends(get_stripe_service),
    webhooks: StripeWebhookService = Depends(get_webhook_service),
):
    payload = await request.body()
    event = stripe_service.construct_event(payload, stripe_signature)

    try:
        handled = webhooks.handle_event(event)
    except Exception as e:
        logger.exception(f"Stripe webhook {event['type']} failed: {e}")
        raise HTTPException(status_code=500, detail="Webhook processing failed")

    return {"received": True, "handled": handled}
