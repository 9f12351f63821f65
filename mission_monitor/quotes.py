from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional

QUOTES: tuple[str, ...] = (
    "The only way to do great work is to love what you do. - Steve Jobs",
    "Life is what happens to you while you're busy making other plans. - John Lennon",
    "The future belongs to those who believe in the beauty of their dreams. - Eleanor Roosevelt",
    "It is during our darkest moments that we must focus to see the light. - Aristotle",
    "The only impossible journey is the one you never begin. - Tony Robbins",
    "Success is not final, failure is not fatal: it is the courage to continue that counts. - Winston Churchill",
    "The way to get started is to quit talking and begin doing. - Walt Disney",
    "Don't let yesterday take up too much of today. - Will Rogers",
    "It's not whether you get knocked down, it's whether you get up. - Vince Lombardi",
    "We don't have to be smarter than the rest. We have to be more disciplined than the rest. - Warren Buffett",
    "Whether you think you can or you think you can't, you're right. - Henry Ford",
    "Believe you can and you're halfway there. - Theodore Roosevelt",
    "The best time to plant a tree was 20 years ago. The second best time is now. - Chinese Proverb",
)


@dataclass(frozen=True)
class Quote:
    text: str
    author: str


def parse_quote(raw: str) -> Quote:
    text, separator, author = raw.rpartition(" - ")
    if not separator:
        return Quote(text=raw, author="Unknown")
    return Quote(text=text, author=author)


def random_quote(rng: Optional[random.Random] = None) -> Quote:
    chooser = rng or random
    return parse_quote(chooser.choice(QUOTES))


__all__ = ["QUOTES", "Quote", "parse_quote", "random_quote"]
