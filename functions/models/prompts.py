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

from typing import Iterable, Tuple

COMMENT_SUMMARY_PROMPT = (
    "Summarize the following comments from a wellness video in 2-3 sentences. "
    "Focus on the overall sentiment and key themes mentioned:\n\n{comments}"
)


def make_comment_summary_prompt(comments: Iterable[Tuple[str, str]]) -> str:
    """
    Builds the summary prompt from (user_name, text) pairs, one comment per line.
    """
    lines = [f'{user_name}: "{text}"' for user_name, text in comments]
    return COMMENT_SUMMARY_PROMPT.format(comments="\n".join(lines))
