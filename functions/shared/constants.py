# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

from shared.types import JournalTemplate, Plan, Video

MAX_TITLE_LENGTH = 200
MAX_CONTENT_LENGTH = 20000
MAX_COMMENT_LENGTH = 2000

CURRENCY = "usd"

# Identity used by the checkout issuer when no valid bearer token is sent.
DEMO_USER_EMAIL = "demo@example.com"
DEMO_USER_ID = "demo-user"

JOURNAL_TAGS = ("#work", "#family", "#selfcare")
JOURNAL_MOODS = ("😊", "😌", "😢", "😤", "🥰", "😴", "💪", "🌸")
DEFAULT_MOOD = "😊"

JOURNAL_PROMPTS = (
    "What am I grateful for today?",
    "Today's win...",
    "How am I feeling right now?",
    "What made me smile today?",
    "What do I need to let go of?",
)

JOURNAL_TEMPLATES = (
    JournalTemplate(
        name="Gratitude",
        content="Today I am grateful for:\n1. \n2. \n3. \n\nOne thing that made me happy:",
    ),
    JournalTemplate(
        name="Weekly Reflection",
        content=(
            "This week I accomplished:\n\nChallenges I faced:\n\n"
            "What I learned:\n\nGoals for next week:"
        ),
    ),
    JournalTemplate(
        name="Self-Care Check-in",
        content=(
            "How is my body feeling?\n\nHow is my mind?\n\n"
            "What do I need right now?\n\nOne kind thing I'll do for myself:"
        ),
    ),
)

PRICING_PLANS = (
    Plan(
        id="starter",
        name="Starter",
        price=9,
        description="Perfect for getting started with wellness journaling",
        features=[
            "Unlimited journal entries",
            "Voice-to-text support",
            "Basic mood tracking",
            "7-day history",
        ],
    ),
    Plan(
        id="premium",
        name="Premium",
        price=19,
        description="Everything you need for your wellness journey",
        features=[
            "All Starter features",
            "AI-powered insights",
            "Unlimited history",
            "Custom templates",
            "Priority support",
        ],
        popular=True,
    ),
    Plan(
        id="ultimate",
        name="Ultimate",
        price=39,
        description="The complete wellness experience",
        features=[
            "All Premium features",
            "1-on-1 coaching sessions",
            "Personalized wellness plan",
            "Community access",
            "Early feature access",
            "Custom integrations",
        ],
    ),
)

VIDEOS = (
    Video(
        id="1",
        title="Morning Meditation for Inner Peace",
        description=(
            "Start your day with this calming meditation designed to center "
            "your mind and prepare you for the day ahead."
        ),
        youtube_id="dQw4w9WgXcQ",
        duration="15 min",
        category="Meditation",
    ),
    Video(
        id="2",
        title="Heart Opener Yoga Flow",
        description=(
            "A gentle yoga sequence focused on opening the heart chakra and "
            "releasing tension from the shoulders."
        ),
        youtube_id="dQw4w9WgXcQ",
        duration="25 min",
        category="Movement",
    ),
    Video(
        id="3",
        title="Journaling for Self-Discovery",
        description=(
            "Learn powerful journaling techniques to uncover your deepest "
            "desires and connect with your authentic self."
        ),
        youtube_id="dQw4w9WgXcQ",
        duration="20 min",
        category="Mindfulness",
    ),
    Video(
        id="4",
        title="Evening Wind Down Routine",
        description=(
            "A soothing evening practice to help you release the day and "
            "prepare for restful sleep."
        ),
        youtube_id="dQw4w9WgXcQ",
        duration="12 min",
        category="Sleep",
    ),
)


def find_plan(plan_id: str) -> Plan | None:
    for plan in PRICING_PLANS:
        if plan.id == plan_id:
            return plan
    return None


def find_video(video_id: str) -> Video | None:
    for video in VIDEOS:
        if video.id == video_id:
            return video
    return None
