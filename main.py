import asyncio
import sys
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown

from arxiv_assistant.exception.custom_exception import ArxivAssistantException
from arxiv_assistant.src.paper_chat.qa import PaperQA
from arxiv_assistant.src.paper_chat.retrieval import PaperRetriever
from arxiv_assistant.src.paper_ingestion.data_ingestion import PaperIngestor
from arxiv_assistant.src.paper_ingestion.vector_store import FaissManager
from arxiv_assistant.utils.model_loader import ModelLoader
from db.database import AsyncSessionLocal, init_db

console = Console()

# ===========================================================
# DEFAULT PAPER (override with argv: URL NAME)
# ===========================================================
PAPER_URL = "https://arxiv.org/pdf/2305.15334.pdf"
PAPER_NAME = "Gorilla"


async def chat(paper_url: str, paper_name: str) -> None:
    # ===========================================================
    # INITIALIZE PIPELINE
    # ===========================================================
    console.print("[bold cyan]Initializing models and vector store...[/bold cyan]")

    loader = ModelLoader()
    faiss = FaissManager(Path(loader.config["paths"]["faiss_dir"]), loader.load_embeddings())
    ingestor = PaperIngestor(loader, faiss)
    paper_qa = PaperQA(loader, PaperRetriever(faiss, loader.config.get("retriever", {})))

    await init_db()

    async with AsyncSessionLocal() as db:
        console.print(f"[bold cyan]Processing paper:[/bold cyan] {paper_name} ({paper_url})")
        notes = await ingestor.process_paper(db, paper_url, paper_name)

        console.print(f"\n[bold green]Notes ({len(notes)}):[/bold green]")
        for n in notes:
            pages = ", ".join(str(p) for p in n.page_numbers)
            console.print(f"  • {n.note} [dim](pages {pages})[/dim]")

        console.print("\n[green]Paper ready! Ask your questions.[/green]\n")

        # ===========================================================
        # QUESTION LOOP
        # ===========================================================
        while True:
            question = console.input("[bold magenta]You:[/bold magenta] ").strip()

            if question.lower() in ["exit", "quit", "bye"]:
                console.print("[yellow]Exiting. Goodbye![/yellow]")
                break
            if not question:
                continue

            try:
                answers = await paper_qa.qa_over_paper(db, question, paper_name, paper_url)
            except ArxivAssistantException as e:
                console.print(f"[red]{e}[/red]")
                continue

            console.print("\n[bold green]Assistant:[/bold green]")
            for a in answers:
                console.print(Markdown(a.answer or "`<no content>`"))
                if a.followup_questions:
                    console.print("\n[bold yellow]Follow-up questions:[/bold yellow]")
                    for q in a.followup_questions:
                        console.print(f"  - {q}")

            console.print("\n" + "-" * 60 + "\n")


if __name__ == "__main__":
    url, name = (sys.argv[1], sys.argv[2]) if len(sys.argv) > 2 else (PAPER_URL, PAPER_NAME)
    asyncio.run(chat(url, name))
