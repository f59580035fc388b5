"""
Basic Tagcaster Example
=======================

This example demonstrates the core features of Tagcaster:
- Casting replies into Pydantic models
- Unions, enums and containers
- Showing the model an example value
- Logging callbacks for each attempt
- Plugging in your own generation function
- Running casts in parallel

To run this example:
    uv run python examples/basic_example.py

Note: Requires OPENAI_API_KEY environment variable or .env file.
"""

import asyncio
import logging
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, Field

from tagcaster import (
    Caster,
    Message,
    RetryLimitExceeded,
    Tag,
    create_logging_callbacks,
    generate_as,
)

# ============================================================================
# Response Types
# ============================================================================


class Mood(Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class Sentiment(BaseModel):
    """Sentiment analysis result."""

    mood: Mood
    confidence: float = Field(description="Confidence score 0-1")
    keywords: list[str] = Field(description="Key words that indicate sentiment")


class Recipe(BaseModel):
    """A simple recipe."""

    name: str
    ingredients: list[str]
    steps: list[str]
    prep_time_minutes: int
    vegetarian: bool


class Circle(BaseModel):
    """A circle."""

    radius: float


class Rectangle(BaseModel):
    """An axis-aligned rectangle."""

    width: float
    height: float


Shape = Annotated[Circle | Rectangle, Tag("Shape", "The shape described in the text")]


class Category(BaseModel):
    """A category with optional subcategories."""

    title: str
    children: list["Category"] = []


# ============================================================================
# Main Examples
# ============================================================================


async def structured_output_example():
    """Casting a reply into a Pydantic model."""
    print("\n" + "=" * 60)
    print("1. Structured Outputs")
    print("=" * 60)

    caster = Caster(default_model="gpt-5-nano")

    result: Sentiment = await caster.cast(
        Sentiment,
        "Analyze the sentiment: 'I absolutely love this product! Best purchase ever!'",
    )

    print(f"Mood: {result.mood.value}")
    print(f"Confidence: {result.confidence:.2%}")
    print(f"Keywords: {', '.join(result.keywords)}")


async def schema_example():
    """Inspecting the instructions sent to the model."""
    print("\n" + "=" * 60)
    print("2. Schema Rendering")
    print("=" * 60)

    caster = Caster(default_model="gpt-5-nano")

    print(caster.schema_for(Recipe))
    print()
    print(caster.schema_for(Category))


async def union_and_example_value():
    """Unions named with Tag, plus an example value in the prompt."""
    print("\n" + "=" * 60)
    print("3. Unions and Examples")
    print("=" * 60)

    caster = Caster(default_model="gpt-5-nano")

    shape = await caster.cast(
        Shape,
        "The garden bed is 3 meters long and 1.5 meters wide.",
        example=Circle(radius=2.0),
    )
    print(f"Shape: {shape!r}")

    tree = await caster.cast(
        Category,
        system="You organize things into categories.",
        user="Group these: apples, carrots, salmon, pears, tuna.",
    )
    print(f"Top level: {tree.title}, {len(tree.children)} subcategories")


async def logging_example():
    """Logging every attempt, rejection and success."""
    print("\n" + "=" * 60)
    print("4. Logging Callbacks")
    print("=" * 60)

    logger = logging.getLogger("tagcaster.example")
    caster = Caster(
        default_model="gpt-5-nano",
        callbacks=create_logging_callbacks(logger),
        max_retries=2,
    )

    recipe: Recipe = await caster.cast(Recipe, "Give me a quick pancake recipe.")
    print(f"{recipe.name}: {len(recipe.steps)} steps, {recipe.prep_time_minutes} min")


async def custom_generate_example():
    """Bring your own generation function."""
    print("\n" + "=" * 60)
    print("5. Custom Generation Function")
    print("=" * 60)

    replies = iter(
        [
            "Sure! The answer is forty-two.",
            "<integer>42</integer>",
        ]
    )

    def generate(messages: list[Message]) -> str:
        print(f"  Called with {len(messages)} messages")
        return next(replies)

    answer = await generate_as(generate, int, "What is six times seven?")
    print(f"Answer: {answer}")

    try:
        await generate_as(lambda messages: "no idea", int, "Anything?", max_retries=1)
    except RetryLimitExceeded as e:
        print(f"Gave up after {e.attempts} attempts: {e.last_error}")


async def parallel_casts_example():
    """Running multiple casts in parallel."""
    print("\n" + "=" * 60)
    print("6. Parallel Casts")
    print("=" * 60)

    caster = Caster(default_model="gpt-5-nano")

    reviews = [
        "Terrible service, never again.",
        "It was fine, nothing special.",
        "Wonderful experience from start to finish!",
    ]

    results = await caster.cast_many(
        [{"response_model": Sentiment, "messages": review} for review in reviews],
        max_concurrency=3,
    )

    for review, result in zip(reviews, results):
        print(f"{result.mood.value:>8}  {review}")


async def main():
    """Run all examples."""
    print("Tagcaster Basic Examples")
    print("=" * 60)

    await structured_output_example()
    await schema_example()
    await union_and_example_value()
    await logging_example()
    await custom_generate_example()
    await parallel_casts_example()

    print("\n" + "=" * 60)
    print("All examples completed!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
