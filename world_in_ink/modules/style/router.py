from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from world_in_ink.config import settings
from world_in_ink.db.models import WritingStyle
from world_in_ink.db.session import get_db
from world_in_ink.errors import NotFoundError, api_error
from world_in_ink.modules.auth.dev_auth import get_current_user
from world_in_ink.modules.llm.client import OpenAIClient
from world_in_ink.modules.llm.deps import get_ai_client
from world_in_ink.modules.style.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    EligibilityOut,
    EligibilityResponse,
    GenerateRequest,
    GenerateResponse,
    ProfileDeleteResponse,
    ProfileResponse,
    StyleProfileOut,
)
from world_in_ink.modules.style.service import (
    PROFILE_EXAMPLE_LIMIT,
    StyleError,
    analyze_user_style,
    check_eligibility,
    delete_profile,
    generate_with_style,
    get_profile,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/style", tags=["style"])

PROFILE_NOT_FOUND = "No style profile found. Analyze your stories first."


def _profile_out(profile: WritingStyle) -> StyleProfileOut:
    out = StyleProfileOut.model_validate(profile)
    out.examples = out.examples[:PROFILE_EXAMPLE_LIMIT]
    return out


@router.get("/analyze", response_model=EligibilityResponse)
def eligibility(db: Session = Depends(get_db), user=Depends(get_current_user)) -> EligibilityResponse:
    try:
        result = check_eligibility(db, user_id=user["id"])
    except Exception as exc:  # noqa: BLE001
        logger.exception("eligibility check failed for user %s", user["id"])
        raise api_error(500, "Failed to check eligibility") from exc
    return EligibilityResponse(eligibility=EligibilityOut(**asdict(result)))


@router.post("/analyze", response_model=AnalyzeResponse)
def analyze(
    payload: AnalyzeRequest | None = Body(default=None),
    db: Session = Depends(get_db),
    client: OpenAIClient = Depends(get_ai_client),
    user=Depends(get_current_user),
) -> AnalyzeResponse:
    force = bool(payload and payload.force_reanalyze)
    logger.info("style analysis requested by user %s, force=%s", user["id"], force)

    try:
        with db.begin():
            result = check_eligibility(db, user_id=user["id"])
            if not result.eligible:
                raise StyleError("INSUFFICIENT_DATA", result.message, needsMoreData=result.needs_more_data())
            profile = analyze_user_style(db, client, user_id=user["id"], model=settings.chat_model, force=force)
            out = _profile_out(profile)
    except StyleError as exc:
        raise api_error(400, exc.code, exc.message, **exc.extra) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("style analysis failed for user %s", user["id"])
        raise api_error(500, "ANALYSIS_FAILED", "Could not complete the style analysis") from exc
    return AnalyzeResponse(profile=out)


@router.post("/generate", response_model=GenerateResponse)
def generate(
    payload: GenerateRequest,
    db: Session = Depends(get_db),
    client: OpenAIClient = Depends(get_ai_client),
    user=Depends(get_current_user),
) -> GenerateResponse:
    try:
        text, confidence = generate_with_style(
            db,
            client,
            user_id=user["id"],
            model=settings.chat_model,
            prompt=payload.prompt,
            context=payload.context,
            max_length=payload.max_length,
            temperature=payload.temperature,
        )
    except StyleError as exc:
        raise api_error(400, exc.code, exc.message) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("style generation failed for user %s", user["id"])
        raise api_error(500, "GENERATION_FAILED", "Failed to generate text in your style") from exc
    return GenerateResponse(generated_text=text, style_confidence=confidence)


@router.get("/profile", response_model=ProfileResponse)
def read_profile(db: Session = Depends(get_db), user=Depends(get_current_user)) -> ProfileResponse:
    profile = get_profile(db, user_id=user["id"])
    if profile is None:
        raise api_error(404, "NOT_FOUND", PROFILE_NOT_FOUND)
    return ProfileResponse(profile=_profile_out(profile))


@router.delete("/profile", response_model=ProfileDeleteResponse)
def remove_profile(db: Session = Depends(get_db), user=Depends(get_current_user)) -> ProfileDeleteResponse:
    try:
        with db.begin():
            delete_profile(db, user_id=user["id"])
    except NotFoundError as exc:
        raise api_error(404, "NOT_FOUND", str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("failed to delete style profile for user %s", user["id"])
        raise api_error(500, "Failed to delete style profile") from exc
    return ProfileDeleteResponse()
