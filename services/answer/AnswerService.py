"""Grounded answer generation over retrieved search results."""

from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.errors import ClientRequestError
from shared.helper.HelperConfig import HelperConfig
from shared.models.search import RagResponse, RagSource, SearchResult

EXCERPT_CHARS = 150
NO_RESULTS_ANSWER = (
    "I couldn't find any relevant information to answer your question. "
    "Could you rephrase or provide more context?"
)
EMPTY_REPLY_ANSWER = "I couldn't generate a response. Please try again."

SYSTEM_PROMPT = """You are a helpful assistant specializing in banking and financial regulations issued by the central bank.

Answer the user's question based on the following context information.

Context information:
{context}

Instructions:
- Base your answer ONLY on the provided context information
- Cite specific circular numbers or regulations when relevant
- If the answer isn't in the context, say "I don't have enough information to answer this question"
- If multiple documents are relevant, synthesize the information
- Be concise but thorough"""


def format_context(results: list[SearchResult]) -> str:
    return "\n---\n\n".join(
        f"Document: {result.circular_number} - {result.title}\nSource: {result.source}\nContent:\n{result.text}\n"
        for result in results
    )


def make_excerpt(text: str) -> str:
    if len(text) > EXCERPT_CHARS:
        return text[:EXCERPT_CHARS] + "..."
    return text


class AnswerService:
    """Builds a context prompt from search results and asks the chat model."""

    def __init__(self, helper_config: HelperConfig, llm_client: LLMClientInterface) -> None:
        self.logging = helper_config.get_logger()
        self._llm_client = llm_client

    def build_messages(self, query: str, results: list[SearchResult]) -> list[dict]:
        return [
            {"role": "system", "content": SYSTEM_PROMPT.format(context=format_context(results))},
            {"role": "user", "content": query},
        ]

    async def do_answer(self, query: str, results: list[SearchResult]) -> RagResponse:
        """Generate an answer grounded in the given results.

        Args:
            query (str): The user's question.
            results (list[SearchResult]): Ranked results from the retrieval service.

        Returns:
            RagResponse: The answer and one source per result. Without results a
                fixed answer is returned and the model is not called.

        Raises:
            ClientRequestError: If the chat backend fails or replies malformed.
        """
        if not results:
            return RagResponse(answer=NO_RESULTS_ANSWER, sources=[])

        messages = self.build_messages(query, results)
        try:
            answer = await self._llm_client.do_chat(messages)
        except ValueError as exc:
            raise ClientRequestError(f"Chat backend returned an unusable reply: {exc}") from exc

        if not answer or not answer.strip():
            self.logging.warning("Chat backend returned an empty reply for query '%s'.", query)
            answer = EMPTY_REPLY_ANSWER

        sources = [
            RagSource(
                document_id=result.document_id,
                circular_number=result.circular_number,
                title=result.title,
                source=result.source,
                excerpt=make_excerpt(result.text),
            )
            for result in results
        ]
        self.logging.info("Answered query '%s' from %d sources.", query, len(sources))
        return RagResponse(answer=answer, sources=sources)
