"""
Insight Service - AI recommendations for spoilage alerts.

Talks to any OpenAI-compatible chat endpoint. When no key is configured, or the
call/parse fails, it falls back to rule-based insights so the alert review flow
keeps working.
"""
import json
import logging
import re
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from ecotrack.config import settings
from ecotrack.models.alert import Alert

logger = logging.getLogger(__name__)


class InsightService:
    """Generates recommendations and priority actions for an alert"""

    def __init__(self):
        self.model = settings.ai_model
        self.temperature = settings.ai_temperature
        self.timeout = settings.ai_timeout_seconds

        if not settings.ai_api_key:
            logger.warning("AI_API_KEY not set. Alert insights will use rule-based fallback.")
            self.client = None
        else:
            self.client = AsyncOpenAI(
                base_url=settings.ai_base_url,
                api_key=settings.ai_api_key,
                timeout=self.timeout,
            )

    async def generate_alert_insights(self, alert: Alert) -> Dict[str, Any]:
        if self.client is None:
            return self._fallback_insights(alert)

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": "You are a food safety and spoilage prevention expert. Reply with JSON only."},
                    {"role": "user", "content": self._build_prompt(alert)},
                ],
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )
            content = response.choices[0].message.content if response.choices else None
            if not content:
                raise ValueError("AI response has no content")
            parsed = self._parse_json_response(content)
        except Exception as e:
            logger.warning(f"AI insights failed for alert {alert.id}, using rule-based fallback: {str(e)}")
            return self._fallback_insights(alert)

        return {
            "summary": str(parsed.get("summary") or ""),
            "recommendations": self._as_str_list(parsed.get("recommendations")),
            "priority_actions": self._as_str_list(parsed.get("priority_actions")),
            "source": "ai",
        }

    def _build_prompt(self, alert: Alert) -> str:
        return f"""Analyze this spoilage alert and recommend what the inventory team should do.

PRODUCT: {alert.product_name}
RISK LEVEL: {alert.risk_level}
DAYS LEFT: {alert.days_left}
LOCATION: {alert.location or 'Unknown'}
QUANTITY: {alert.quantity or 'Unknown'}
TEMPERATURE: {alert.temperature if alert.temperature is not None else 'Unknown'} C
HUMIDITY: {alert.humidity if alert.humidity is not None else 'Unknown'} %

Return JSON with keys:
  "summary": one or two sentences,
  "recommendations": list of short recommendations, most important first,
  "priority_actions": list of immediate actions, most urgent first"""

    def _parse_json_response(self, content: str) -> Dict[str, Any]:
        """Parse model output, tolerating code fences and <think> preambles"""
        text = content.strip()
        text = re.sub(r"```(?:json)?", "", text)
        if "<think>" in text or not text.startswith("{"):
            start, end = text.find("{"), text.rfind("}")
            if start == -1 or end == -1:
                raise ValueError("No JSON object in AI response")
            text = text[start:end + 1]
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("AI response is not a JSON object")
        return data

    @staticmethod
    def _as_str_list(value: Any) -> List[str]:
        if not value:
            return []
        if isinstance(value, str):
            return [value]
        return [str(v) for v in value if v]

    def _fallback_insights(self, alert: Alert) -> Dict[str, Any]:
        days_left = alert.days_left or 0
        risk = (alert.risk_level or "MEDIUM").upper()

        if risk == "HIGH":
            recommendations = [
                f"Sell, donate or process {alert.product_name} within {days_left} days",
                "Move stock to the front of outbound deliveries",
            ]
            actions = ["Apply markdown pricing today", "Inspect stock for visible spoilage"]
        elif risk == "MEDIUM":
            recommendations = [
                f"Prioritize {alert.product_name} in the next delivery run",
                "Verify storage temperature and humidity are within range",
            ]
            actions = ["Schedule for next dispatch"]
        else:
            recommendations = ["Keep current storage conditions", "Monitor during routine checks"]
            actions = []

        return {
            "summary": f"{alert.product_name} has {days_left} days remaining. Risk level: {risk}.",
            "recommendations": recommendations,
            "priority_actions": actions,
            "source": "rules",
        }


def suggestion_from_insights(alert: Alert, insights: Optional[Dict[str, Any]]) -> str:
    """Text stored on the approval when an admin accepts an alert"""
    recommendations = (insights or {}).get("recommendations") or []
    if recommendations:
        actions = (insights or {}).get("priority_actions") or []
        return f"{recommendations[0]}. {actions[0] if actions else ''}".strip()
    return f"{alert.risk_level} risk: {alert.days_left} days remaining. Immediate action required."


# Singleton instance
insight_service = InsightService()
