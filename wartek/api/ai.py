from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from wartek.api.deps import get_current_user
from wartek.api.posts import load_post
from wartek.core.db import get_db
from wartek.services import analysis
from wartek.services.categorizer import TextGenerator
from wartek.services.generator import get_text_generator

router = APIRouter(prefix="/ai", tags=["ai"], dependencies=[Depends(get_current_user)])

@router.post("/posts/{post_id}/summary")
async def post_summary(
    post_id: int,
    session: AsyncSession = Depends(get_db),
    generator: TextGenerator = Depends(get_text_generator),
):
    post = await load_post(session, post_id)
    summary = await analysis.generate_summary(generator, post.title, post.description)
    post.summary = summary
    await session.commit()
    return {"summary": summary, "message": "AI summary generated successfully"}

@router.post("/posts/{post_id}/5w1h")
async def post_5w1h(
    post_id: int,
    session: AsyncSession = Depends(get_db),
    generator: TextGenerator = Depends(get_text_generator),
):
    post = await load_post(session, post_id)
    text = await analysis.generate_5w1h(generator, post.title, post.description)
    return {"analysis": text, "type": "5W1H", "message": "5W1H analysis generated successfully"}

@router.post("/posts/{post_id}/comparison")
async def post_comparison(
    post_id: int,
    session: AsyncSession = Depends(get_db),
    generator: TextGenerator = Depends(get_text_generator),
):
    post = await load_post(session, post_id)
    text = await analysis.generate_comparison(generator, post.title, post.description)
    return {"comparison": text, "type": "market_comparison", "message": "Market comparison generated successfully"}

@router.post("/posts/{post_id}/analyze-all")
async def post_analyze_all(
    post_id: int,
    session: AsyncSession = Depends(get_db),
    generator: TextGenerator = Depends(get_text_generator),
):
    post = await load_post(session, post_id)
    bundle = await analysis.generate_all(generator, post.title, post.description)
    post.summary = bundle.summary
    await session.commit()
    return {
        "summary": bundle.summary,
        "analysis": bundle.analysis,
        "comparison": bundle.comparison,
        "message": "All AI analyses generated successfully",
    }
