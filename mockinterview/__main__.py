#!/usr/bin/env python3
"""
Main entry point for the mock interview engine.
Allows running the package with: python -m mockinterview
"""
import sys
import asyncio

from .config import get_config, ConfigurationError, NUM_QUESTIONS, ASSISTANT_LABEL
from .utils import setup_logging
from .infrastructure.llm import VertexRestClient, StreamingChatClient, LLMRequestError
from .infrastructure.audio import GoogleSpeechInput, GoogleSpeechOutput
from .infrastructure.data import InterviewStore
from .interview import (
    InterviewOrchestrator, InterviewEventBus, EventType, InterviewEvent,
    QuestionGenerator, FeedbackGenerator, InterviewSetupService, FeedbackHandoff,
    InterviewFeedback
)

HELP = """Usage: python -m mockinterview [options]

  --role=ROLE          Position to interview for (default: Software Engineer)
  --type=TYPE          technical, behavioral or mixed (default: technical)
  --level=LEVEL        junior, mid or senior (default: mid)
  --stack=A,B,C        Comma-separated tech stack
  --questions=N        Number of questions to generate
  --name=NAME          Your name as shown in the transcript
  --text               Text only, no microphone or speech playback
  --voice              Use the microphone and speech playback
  --history            List stored interviews and exit

During the call type your answers, /mute to toggle the microphone, /end to finish."""


class ConsoleRenderer:
    """Renders orchestrator events to the terminal."""

    def __init__(self, event_bus: InterviewEventBus, assistant_label: str = ASSISTANT_LABEL):
        self.assistant_label = assistant_label
        self._printed = 0
        event_bus.subscribe(EventType.ASSISTANT_PARTIAL, self.on_partial)
        event_bus.subscribe(EventType.TURN_COMPLETED, self.on_turn_completed)
        event_bus.subscribe(EventType.NOTICE, self.on_notice)
        event_bus.subscribe(EventType.ERROR_OCCURRED, self.on_error)

    def on_partial(self, event: InterviewEvent) -> None:
        text = event.data["text"]
        if self._printed == 0:
            print(f"\n🤖 {self.assistant_label}: ", end="", flush=True)
        print(text[self._printed:], end="", flush=True)
        self._printed = len(text)

    def on_turn_completed(self, event: InterviewEvent) -> None:
        if self._printed == 0:
            print(f"\n🤖 {self.assistant_label}: {event.data['assistant_text']}", end="")
        print("\n")
        self._printed = 0

    def on_notice(self, event: InterviewEvent) -> None:
        icon = {"warning": "⚠️ ", "error": "❌"}.get(event.data["level"], "ℹ️ ")
        print(f"{icon} {event.data['message']}")

    def on_error(self, event: InterviewEvent) -> None:
        if self._printed:
            print()
        self._printed = 0


def print_feedback(feedback: InterviewFeedback) -> None:
    print("\n" + "=" * 50)
    print("🎯 INTERVIEW FEEDBACK")
    print("=" * 50)
    print(f"📊 Overall Score: {feedback.overall_score}/100")
    for name, score in feedback.category_scores.items():
        print(f"   • {name}: {score}")
    if feedback.strengths:
        print("💪 Strengths:")
        for item in feedback.strengths:
            print(f"   • {item}")
    if feedback.improvements:
        print("📈 Areas to improve:")
        for item in feedback.improvements:
            print(f"   • {item}")
    if feedback.final_assessment:
        print(f"📝 {feedback.final_assessment}")


def print_history(store: InterviewStore) -> None:
    records = store.list_interviews()
    if not records:
        print("No interviews yet.")
        return
    for record in records:
        feedback = store.get_feedback(record.id)
        score = f"{feedback.overall_score}/100" if feedback else "-"
        print(f"{record.created_at[:16]}  {record.role} ({record.type}, {record.level})  "
              f"{record.status}  {score}  [{record.id}]")


async def run_call(orchestrator: InterviewOrchestrator) -> None:
    """Drive one call from typed input until /end or end of input."""
    try:
        await orchestrator.start()
        while orchestrator.state.active:
            try:
                line = await asyncio.to_thread(input, "")
            except EOFError:
                break

            command = line.strip().lower()
            if command == "/end":
                break
            if command == "/mute":
                muted = orchestrator.toggle_mute()
                print("🔇 Microphone muted" if muted else "🎤 Microphone on")
                continue
            await orchestrator.submit_text(line)

        print("📞 Ending call...")
        await orchestrator.end()
    finally:
        await orchestrator.close()


def main():
    """Command-line interface for a mock interview call."""

    if "--help" in sys.argv or "-h" in sys.argv:
        print(HELP)
        return

    # Load configuration from environment
    try:
        config = get_config()
    except ConfigurationError as e:
        print(f"❌ Configuration Error: {e}")
        sys.exit(1)

    setup_logging(config.log_file, config.log_level)
    store = InterviewStore(config.data_dir)

    if "--history" in sys.argv:
        print_history(store)
        return

    role, interview_type, level = "Software Engineer", "technical", "mid"
    tech_stack = []
    num_questions = config.num_questions or NUM_QUESTIONS
    user_name = config.user_name
    for arg in sys.argv[1:]:
        if arg.startswith("--role="):
            role = arg.split("=", 1)[1].strip() or role
        elif arg.startswith("--type="):
            interview_type = arg.split("=", 1)[1].strip() or interview_type
        elif arg.startswith("--level="):
            level = arg.split("=", 1)[1].strip() or level
        elif arg.startswith("--stack="):
            tech_stack = [s.strip() for s in arg.split("=", 1)[1].split(",") if s.strip()]
        elif arg.startswith("--name="):
            user_name = arg.split("=", 1)[1].strip() or user_name
        elif arg.startswith("--questions="):
            try:
                num_questions = max(1, min(20, int(arg.split("=", 1)[1])))
            except ValueError:
                print("❌ Invalid question count. Use --questions=1 to --questions=20")
                sys.exit(1)

    # Voice configuration with explicit flags taking precedence
    if "--text" in sys.argv:
        use_voice = False
    elif "--voice" in sys.argv:
        use_voice = True
    else:
        use_voice = config.enable_voice

    llm_client = VertexRestClient(
        project=config.google_cloud_project,
        location=config.vertex_location,
        model=config.model_name,
        credentials_json=config.google_application_credentials,
    )

    print(f"🧠 Generating {num_questions} questions for {level} {role} ({interview_type})...")
    setup = InterviewSetupService(QuestionGenerator(llm_client), store)
    try:
        session = setup.create_session(role, interview_type, level, tech_stack, num_questions, user_name)
    except LLMRequestError as e:
        print(f"❌ Failed to generate questions. Please try again. ({e})")
        sys.exit(1)

    event_bus = InterviewEventBus()
    ConsoleRenderer(event_bus)
    handoff = FeedbackHandoff(session, FeedbackGenerator(llm_client), store, event_bus)

    speech_input = speech_output = None
    if use_voice:
        speech_input = GoogleSpeechInput(language_code=config.language_code)
        speech_output = GoogleSpeechOutput(
            preferred_voice=config.tts_voice,
            language_code=config.language_code,
            speaking_rate=config.tts_speaking_rate,
            pitch=config.tts_pitch,
        )
        print("🎤 Voice Mode: speak your answers, or type them")
        print("   (Use --text to disable speech)")
    else:
        print("📝 Text Mode: type your answers")

    orchestrator = InterviewOrchestrator(
        session=session,
        chat_client=StreamingChatClient(config.chat_endpoint_url, config.chat_api_key),
        speech_input=speech_input,
        speech_output=speech_output,
        event_bus=event_bus,
        timings=config.timings,
        on_complete=handoff.handle,
    )

    print(f"📞 Starting interview {session.interview_id or ''} - /mute, /end")
    print(f"📝 Detailed logs: {config.log_file}")
    print("=" * 50)

    try:
        asyncio.run(run_call(orchestrator))
    except KeyboardInterrupt:
        print("\n👋 Interview interrupted")
        return

    if handoff.feedback is not None:
        print_feedback(handoff.feedback)


if __name__ == "__main__":
    main()
