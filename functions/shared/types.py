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

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class PaymentStatus(str, Enum):
    """Lifecycle of a payment record: pending -> completed | cancelled."""

    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self != PaymentStatus.PENDING


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Plan:
    """A subscription tier with a fixed monthly price in whole dollars."""

    id: str
    name: str
    price: int
    description: str
    features: List[str] = field(default_factory=list)
    popular: bool = False

    @property
    def amount_minor_units(self) -> int:
        return self.price * 100


@dataclass(frozen=True)
class Video:
    id: str
    title: str
    description: str
    youtube_id: str
    duration: str
    category: str


@dataclass(frozen=True)
class JournalTemplate:
    name: str
    content: str
