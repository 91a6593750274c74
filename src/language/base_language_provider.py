# src/language/base_language_provider.py - v1
"""Abstract tokenizer/vectorizer service."""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseLanguageProvider(ABC):
    """Language server client used for tokenization and embeddings."""

    @abstractmethod
    async def tokenize(self, texts: list[str], language: str) -> list[list[str]]:
        """Tokenize each text; one token list per input text."""

    @abstractmethod
    async def vectorize(self, tokens: list[str], language: str) -> list[list[float]]:
        """One embedding vector per token."""

    @abstractmethod
    async def generate_similar_junk_words(self, vocab: list[str], language: str) -> list[str]:
        """Words close to the vocabulary, used to synthesize negative samples."""
