"""Dispatch chunks to the model and collect what comes back.

Each chunk is reviewed independently: one chunk that exhausts its retries is
recorded as failed and contributes no comments, while the others carry on.
With ``max_workers > 1`` chunks are dispatched on a bounded thread pool;
results are always aggregated in chunk order so the output does not depend
on scheduling.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from hunkwise_core.models import CandidateComment, DiffChunk, PRContext, ProviderResponse, TokenUsage
from hunkwise_core.parsing import parse_response
from hunkwise_core.prompts import build_review_prompt
from hunkwise_core.providers.base import BaseProvider, ProviderError
from hunkwise_core.utils.tokens import estimate_tokens

logger = logging.getLogger(__name__)


@dataclass
class ChunkResult:
    index: int
    files: list[str]
    candidates: list[CandidateComment] = field(default_factory=list)
    usage: TokenUsage = field(default_factory=TokenUsage)
    cost: float | None = None
    error: str | None = None


@dataclass
class FailedChunk:
    index: int
    files: list[str]
    error: str


@dataclass
class ReviewResult:
    candidates: list[CandidateComment] = field(default_factory=list)
    usage: TokenUsage = field(default_factory=TokenUsage)
    cost: float | None = None
    failed_chunks: list[FailedChunk] = field(default_factory=list)


def send(provider: BaseProvider, prompt: str, model: str | None) -> ProviderResponse:
    return provider.send(prompt, model)


def review_chunk(
    index: int,
    chunk: DiffChunk,
    provider: BaseProvider,
    model: str | None,
    config: dict,
    pr_context: PRContext | None = None,
) -> ChunkResult:
    """Review one chunk. Provider failures are captured in ``ChunkResult.error``."""
    prompt = build_review_prompt(config, chunk, pr_context)
    logger.debug("Chunk %d: %d bytes, files=%s", index, chunk.size, chunk.filenames)

    try:
        response = send(provider, prompt, model)
    except ProviderError as e:
        logger.error("Chunk %d (%s) failed: %s", index, ", ".join(chunk.filenames), e)
        return ChunkResult(index=index, files=chunk.filenames, error=str(e))

    usage = response.usage
    if usage is None:
        effective_model = model or provider.DEFAULT_MODEL
        usage = TokenUsage(
            input=estimate_tokens(prompt, effective_model),
            output=estimate_tokens(response.text, effective_model),
        )
    candidates = parse_response(response.text)
    logger.info("Chunk %d: %d candidate comment(s)", index, len(candidates))
    return ChunkResult(index=index, files=chunk.filenames, candidates=candidates, usage=usage, cost=response.cost)


def run_chunks(
    chunks: list[DiffChunk],
    provider: BaseProvider,
    model: str | None,
    config: dict,
    pr_context: PRContext | None = None,
) -> ReviewResult:
    """Review every chunk and aggregate comments, usage and failures."""
    max_workers = max(1, int(config.get("max_workers", 1)))

    if max_workers == 1 or len(chunks) <= 1:
        results = [review_chunk(i, chunk, provider, model, config, pr_context) for i, chunk in enumerate(chunks, 1)]
    else:
        with ThreadPoolExecutor(max_workers=min(max_workers, len(chunks))) as pool:
            futures = [
                pool.submit(review_chunk, i, chunk, provider, model, config, pr_context)
                for i, chunk in enumerate(chunks, 1)
            ]
            results = [f.result() for f in futures]

    aggregate = ReviewResult()
    for result in results:
        if result.error is not None:
            aggregate.failed_chunks.append(FailedChunk(index=result.index, files=result.files, error=result.error))
            continue
        aggregate.candidates.extend(result.candidates)
        aggregate.usage = aggregate.usage + result.usage
        if result.cost is not None:
            aggregate.cost = (aggregate.cost or 0.0) + result.cost
    return aggregate
