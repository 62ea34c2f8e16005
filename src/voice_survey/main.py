"""Entry point for Voice Survey."""

import asyncio
import logging

from dotenv import load_dotenv

from .config.settings import Settings
from .models import SurveyResponse
from .repository import create_repositories
from .repository.base import ResponseRepository, SurveyRepository
from .server import VoiceSurveyServer
from .session import VoiceSession
from .speech import create_provider


async def run_local_session(
    settings: Settings,
    survey_repo: SurveyRepository,
    response_repo: ResponseRepository,
) -> None:
    """Take the configured survey on this machine's speaker and microphone."""
    survey = await survey_repo.get_for_session(settings.storage.survey_id)
    if not survey:
        print("No survey available for this session.")
        return

    done = asyncio.Event()

    async def on_submitted(response: SurveyResponse) -> None:
        print(f"Response {response.id} submitted.")
        done.set()

    session = VoiceSession(
        survey=survey,
        provider=create_provider(settings.voice),
        flow_settings=settings.flow,
        response_repository=response_repo,
        on_submitted=on_submitted,
    )
    session.status.subscribe(lambda update: print(f"[STATUS] {update.text}"))

    print(f"Survey: {survey.title} ({len(survey.questions)} questions)")
    try:
        if await session.controller.start():
            await done.wait()
    finally:
        await session.close()


def main() -> None:
    """Start Voice Survey with the configured speech provider."""
    # Load environment variables
    load_dotenv()

    # Initialize settings
    settings = Settings()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize repositories
    survey_repo, response_repo = create_repositories(settings)

    if settings.voice.provider == "local":
        runner = run_local_session(settings, survey_repo, response_repo)
    else:
        server = VoiceSurveyServer(
            settings=settings,
            survey_repo=survey_repo,
            response_repo=response_repo,
        )
        runner = server.start()

    try:
        asyncio.run(runner)
    except KeyboardInterrupt:
        print("\nShutdown.")


if __name__ == "__main__":
    main()
