"""Assistant gateway: prompt templates for search, explain, and fix.

Each operation formats a fixed prompt from typed input, asks the generation
provider for JSON matching the output model, and validates the reply.
Provider failures and malformed replies surface as AssistantError.
"""

from __future__ import annotations

import json
import logging
import re
import time
from collections.abc import Iterable

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from codepilot.agent.provider import GeminiProvider, GenerationProvider
from codepilot.errors import AssistantError

logger = logging.getLogger(__name__)

FILE_SEPARATOR = "\n\n---\n\n"


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class SearchRequest(BaseModel):
    query: str = Field(description="The natural language query to search for code functionality.")
    codeSnippet: str = Field(
        description=(
            "The content of one or more source files. Each file's content is prefixed "
            'with its path, e.g. "File: src/components/button.tsx\\n\\n...". '
            'Files are separated by "---".'
        ),
    )


class SearchResult(BaseModel):
    relevantCode: str = Field(
        description=(
            "A consolidated code block containing the most relevant functions or snippets "
            "from all provided files. Each snippet is marked with a comment giving its "
            'original file path, e.g. "// File: src/components/button.tsx".'
        ),
    )
    explanation: str = Field(description="An explanation of the combined code snippets.")


class ExplainRequest(BaseModel):
    code: str = Field(description="The code snippet to be explained.")


class ExplainResult(BaseModel):
    explanation: str = Field(description="The explanation of the code.")


class FixRequest(BaseModel):
    errorMessage: str = Field(description="The error message to be fixed.")
    codeSnippet: str = Field(description="The code snippet that caused the error.")


class FixResult(BaseModel):
    fixedCode: str = Field(description="The suggested code fix.")
    explanation: str = Field(description="An explanation of the fix.")


NO_RESULTS = SearchResult(
    relevantCode="No relevant code found.",
    explanation="Could not find any code matching your query.",
)

SEARCH_FAILED = SearchResult(
    relevantCode="Error: The AI could not process the search request.",
    explanation="An error occurred while trying to analyze the code.",
)


# ---------------------------------------------------------------------------
# Prompt templates
# ---------------------------------------------------------------------------

SYSTEM_PROMPT = "You are an AI code assistant."

FIX_SYSTEM_PROMPT = "You are an AI code assistant that helps developers fix errors in their code."

SEARCH_PROMPT = """\
A user has searched their codebase with the query "{query}".

The following string contains the contents of one or more files that were found to \
contain the query. Your task is to analyze all the provided file contents and find the \
most relevant functions or code blocks that semantically match the user's query. The \
match does not need to be exact; for example, a query for "list tasks" should match a \
function named "list_task".

Combine all the relevant code snippets you find into a single code block. Crucially, \
before each snippet, you must add a comment with its original file path, for example:
// File: src/utils/tasks.ts
function list_task() {{ ... }}

// File: src/components/task-list.tsx
// ... another relevant snippet

Finally, provide a concise explanation of the combined code you've extracted.

File Content(s):
```
{codeSnippet}
```
"""

EXPLAIN_PROMPT = """\
Explain the following code snippet in a clear and concise manner:

{code}"""

FIX_PROMPT = """\
You will be given an error message and a code snippet. You should analyze the error \
message and the code snippet and suggest a fix for the error. You should also provide \
an explanation of the fix.

Error message: {errorMessage}
Code snippet: {codeSnippet}

Suggest code fix:"""


def format_search_snippet(matches: Iterable[tuple[str, str]]) -> str:
    """Join (path, content) pairs as ``File: <path>\\n\\n<content>`` blocks."""
    return FILE_SEPARATOR.join(f"File: {path}\n\n{content}" for path, content in matches)


def _parse_output(raw: str, model: type[BaseModel]) -> BaseModel:
    """Parse a JSON reply into ``model``, accepting a markdown-fenced body."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        match = re.search(r"```(?:json)?\s*(.*?)```", raw, re.DOTALL)
        if not match:
            raise AssistantError(f"Model returned non-JSON output for {model.__name__}")
        try:
            data = json.loads(match.group(1))
        except json.JSONDecodeError as e:
            raise AssistantError(f"Model returned malformed JSON for {model.__name__}: {e}") from e
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise AssistantError(
            f"Model output did not match {model.__name__}: {e.error_count()} error(s)"
        ) from e


class AssistantGateway:
    """Formats assistant requests and forwards them to a generation provider.

    The provider is created lazily on first use so that the gateway can be
    constructed without credentials.
    """

    def __init__(self, provider: GenerationProvider | None = None) -> None:
        self._provider = provider

    @property
    def provider(self) -> GenerationProvider:
        if self._provider is None:
            self._provider = GeminiProvider()
        return self._provider

    def _call(
        self, name: str, prompt: str, output: type[BaseModel], system: str = SYSTEM_PROMPT
    ) -> BaseModel:
        t0 = time.perf_counter()
        try:
            raw = self.provider.generate(prompt, system=system, response_schema=output)
        except AssistantError:
            raise
        except Exception as e:
            logger.warning("%s: provider call failed after %.2fs: %s", name, time.perf_counter() - t0, e)
            raise AssistantError(f"{name} request failed: {e}") from e
        result = _parse_output(raw, output)
        logger.info("%s complete: %d char reply (%.2fs)", name, len(raw), time.perf_counter() - t0)
        return result

    def search(self, req: SearchRequest) -> SearchResult:
        """Pick the code in ``req.codeSnippet`` relevant to ``req.query``.

        An empty snippet short-circuits to NO_RESULTS without a model call.
        """
        if not req.codeSnippet:
            logger.info("search: empty snippet for %r, skipping model call", req.query[:120])
            return NO_RESULTS.model_copy()
        prompt = SEARCH_PROMPT.format(query=req.query, codeSnippet=req.codeSnippet)
        return self._call("search", prompt, SearchResult)

    def explain(self, req: ExplainRequest) -> ExplainResult:
        return self._call("explain", EXPLAIN_PROMPT.format(code=req.code), ExplainResult)

    def fix(self, req: FixRequest) -> FixResult:
        prompt = FIX_PROMPT.format(errorMessage=req.errorMessage, codeSnippet=req.codeSnippet)
        return self._call("fix", prompt, FixResult, system=FIX_SYSTEM_PROMPT)

