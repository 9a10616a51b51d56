"""命令行入口：python -m workshop_core <command>。

每个子命令对应一个练习：
  chat            函数调用 + 中间件管道的控制台聊天
  quiz            出题并判分的小测验
  similarity      句子 embedding 相似度
  semantic-search 手写点积语义检索
  faiss-search    FAISS HNSW 索引检索
  ingest-manuals  把产品手册分块写入 Qdrant
  chatbot         基于手册的 RAG 客服助手
  evaluate        RAG 助手的批量评估
  mcp-server      通过 MCP (stdio) 暴露购物车工具
"""

import argparse
import sys
from typing import Callable, Dict, List, Optional

from workshop_core.apps.chat import ChatSession, build_chat_pipeline, run_console
from workshop_core.apps.quiz import QuizSession, run_quiz
from workshop_core.config.settings import settings
from workshop_core.domain.exceptions import BusinessError
from workshop_core.embeddings import create_embedding_generator
from workshop_core.evaluation import Evaluator, build_evaluation_clients, chatbot_answer_fn, load_eval_questions
from workshop_core.infrastructure.logging.logger import logger
from workshop_core.pipeline.builder import ChatClientBuilder
from workshop_core.providers import create_provider
from workshop_core.rag import (
    ChatbotThread,
    create_qdrant_client,
    get_current_product,
    ingest_manual_chunks,
    load_manual_chunks,
    load_products,
    run_chatbot,
)
from workshop_core.rag.products import MANUAL_CHUNKS_FILE
from workshop_core.search import (
    FaissSemanticSearch,
    ManualSemanticSearch,
    load_document_titles,
    load_github_issues,
    sentence_similarity,
)
from workshop_core.shop import Cart, ECommerceToolServer, build_mcp_server

DOCUMENT_TITLES_FILE = "document_titles.json"
GITHUB_ISSUES_FILE = "github_issues.json"
EVAL_QUESTIONS_FILE = "evalquestions.json"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="workshop_core", description="Chat client workshop exercises.")
    parser.add_argument(
        "--provider",
        choices=["github", "openai", "azure", "ollama"],
        default=None,
        help="Override AI_PROVIDER for this run.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("chat", help="Console chat with sock-shop tools and middleware.")

    quiz = sub.add_parser("quiz", help="Answer AI-generated quiz questions.")
    quiz.add_argument("--subject", default=None, help="Quiz subject (defaults to QUIZ_SUBJECT).")
    quiz.add_argument("--questions", type=int, default=5, help="Number of questions.")

    sub.add_parser("similarity", help="Print cat/dog/kitten embedding similarities.")
    sub.add_parser("semantic-search", help="Brute-force semantic search over document titles.")

    faiss_search = sub.add_parser("faiss-search", help="Semantic search over GitHub issues with FAISS.")
    faiss_search.add_argument("--index", default=None, help="Index file (defaults to FAISS_INDEX_PATH).")
    faiss_search.add_argument("--size", type=int, default=None, help="Number of most recent issues to index.")

    ingest = sub.add_parser("ingest-manuals", help="Embed manual chunks into Qdrant.")
    ingest.add_argument("--batch-size", type=int, default=64)

    chatbot = sub.add_parser("chatbot", help="Answer product questions from manuals, with citations.")
    chatbot.add_argument("--product-id", type=int, default=None)

    evaluate = sub.add_parser("evaluate", help="Score chatbot answers against the evaluation set.")
    evaluate.add_argument("--limit", type=int, default=None, help="Only evaluate the first N questions.")
    evaluate.add_argument("--parallelism", type=int, default=None)

    sub.add_parser("mcp-server", help="Serve the sock-shop tools over MCP (stdio).")
    return parser.parse_args(argv)


def _query_loop(run_query: Callable[[str], None], input_fn=input) -> None:
    while True:
        try:
            query = input_fn("\nQuery: ").strip()
        except EOFError:
            break
        if not query:
            break
        run_query(query)


def cmd_chat(args: argparse.Namespace) -> int:
    server = ECommerceToolServer(Cart())
    client = build_chat_pipeline(create_provider(args.provider), settings)
    run_console(ChatSession(client, tools=server.tools()))
    return 0


def cmd_quiz(args: argparse.Namespace) -> int:
    session = QuizSession(
        create_provider(args.provider),
        subject=args.subject or settings.quiz_subject,
        num_questions=args.questions,
    )
    run_quiz(session)
    return 0


def cmd_similarity(args: argparse.Namespace) -> int:
    report = sentence_similarity(create_embedding_generator(settings))
    for line in report.lines():
        print(line)
    return 0


def cmd_semantic_search(args: argparse.Namespace) -> int:
    titles = load_document_titles(settings.data_path / DOCUMENT_TITLES_FILE)
    search = ManualSemanticSearch(create_embedding_generator(settings), titles)
    print(f"Got {search.index()} title-embedding pairs")

    def run_query(query: str) -> None:
        for similarity, title in search.search(query, top=3):
            print(f"({similarity:.2f}): {title}")

    _query_loop(run_query)
    return 0


def cmd_faiss_search(args: argparse.Namespace) -> int:
    issues = load_github_issues(
        settings.data_path / GITHUB_ISSUES_FILE,
        take_last=args.size or settings.faiss_dataset_size,
    )
    search = FaissSemanticSearch(create_embedding_generator(settings), issues, dimension=settings.embedding_dimension)
    index = search.load_or_create_index(args.index or settings.faiss_index_path)
    print(f"Index ready with {index.ntotal} entries")

    def run_query(query: str) -> None:
        hits, elapsed_ms = search.search(query, k=3)
        for hit in hits:
            print(f"({hit.distance:.2f}): {hit.title}")
        print(f"Search duration: {elapsed_ms:.2f}ms")

    _query_loop(run_query)
    return 0


def cmd_ingest_manuals(args: argparse.Namespace) -> int:
    chunks = load_manual_chunks(settings.data_path / MANUAL_CHUNKS_FILE)
    total = ingest_manual_chunks(
        create_embedding_generator(settings),
        create_qdrant_client(settings),
        chunks,
        collection=settings.manuals_collection,
        dimension=settings.embedding_dimension,
        batch_size=args.batch_size,
    )
    print(f"Ingested {total} manual chunks into '{settings.manuals_collection}'")
    return 0


def cmd_chatbot(args: argparse.Namespace) -> int:
    products = load_products(settings.data_path)
    product = get_current_product(products, args.product_id or settings.current_product_id)
    client = (
        ChatClientBuilder(create_provider(args.provider))
        .use_logging()
        .use_function_invocation(max_rounds=settings.max_tool_rounds)
        .use_retry_on_rate_limit(max_attempts=settings.retry_max_attempts)
        .build()
    )
    thread = ChatbotThread(
        client,
        create_embedding_generator(settings),
        create_qdrant_client(settings),
        product,
        collection=settings.manuals_collection,
    )
    run_chatbot(thread, product)
    return 0


def cmd_evaluate(args: argparse.Namespace) -> int:
    products = load_products(settings.data_path)
    questions = load_eval_questions(settings.data_path / EVAL_QUESTIONS_FILE)
    if args.limit:
        questions = questions[: args.limit]
    chatbot_client, evaluation_client = build_evaluation_clients(create_provider(args.provider), settings)
    generator = create_embedding_generator(settings)
    qdrant_client = create_qdrant_client(settings)
    answer_fn = chatbot_answer_fn(
        chatbot_client,
        generator,
        qdrant_client,
        products,
        collection=settings.manuals_collection,
        output_fn=print,
    )
    evaluator = Evaluator(
        answer_fn,
        evaluation_client,
        parallelism=args.parallelism or settings.eval_parallelism,
        output_fn=print,
    )
    averages = evaluator.run(questions)
    print(averages.summary())
    return 0


def cmd_mcp_server(args: argparse.Namespace) -> int:
    build_mcp_server(Cart()).run()
    return 0


COMMANDS: Dict[str, Callable[[argparse.Namespace], int]] = {
    "chat": cmd_chat,
    "quiz": cmd_quiz,
    "similarity": cmd_similarity,
    "semantic-search": cmd_semantic_search,
    "faiss-search": cmd_faiss_search,
    "ingest-manuals": cmd_ingest_manuals,
    "chatbot": cmd_chatbot,
    "evaluate": cmd_evaluate,
    "mcp-server": cmd_mcp_server,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        return COMMANDS[args.command](args)
    except BusinessError as e:
        logger.error("cli.failed", extra={"extra": {"command": args.command, "code": e.code, "error": e.message}})
        print(f"[{e.code}] {e.message}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
