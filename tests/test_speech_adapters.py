import asyncio
import os
import threading
from types import SimpleNamespace

import pytest
from google.api_core import exceptions as google_exceptions

from mockinterview.infrastructure.audio.speech import (
    GoogleSpeechInput, GoogleSpeechOutput, SpeechErrorCode, SpeechInputError, recognize_google_sync
)


def recognition(*transcripts):
    """A recognize() response; None stands for a result without alternatives."""
    return SimpleNamespace(results=[
        SimpleNamespace(alternatives=[SimpleNamespace(transcript=t)] if t is not None else [])
        for t in transcripts
    ])


class FakeSpeechClient:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.configs = []

    def recognize(self, config, audio):
        self.configs.append(config)
        if self.error is not None:
            raise self.error
        return self.response


class FakeRecorder:
    """Stands in for the microphone; optionally holds until aborted."""

    sample_rate = 16000

    def __init__(self, audio=b"\x10\x00" * 480, hold=0.0):
        self.audio = audio
        self.hold = hold
        self.calls = 0
        self.aborted = False
        self.started = threading.Event()
        self.finished = threading.Event()

    def record_utterance(self, abort):
        self.calls += 1
        self.started.set()
        try:
            if self.hold and abort.wait(self.hold):
                self.aborted = True
                raise SpeechInputError(SpeechErrorCode.ABORTED)
            return self.audio
        finally:
            self.finished.set()


async def wait_until(predicate, timeout=1.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        assert loop.time() < deadline, "condition not reached in time"
        await asyncio.sleep(0.01)


def test_recognition_joins_results_and_skips_empty_ones():
    client = FakeSpeechClient(recognition("I led the", None, "migration."))

    text = recognize_google_sync(b"\x00\x00" * 160, 16000, "en-GB", client=client)

    assert text == "I led the migration."
    assert client.configs[0].language_code == "en-GB"
    assert client.configs[0].sample_rate_hertz == 16000


@pytest.mark.parametrize("error, code", [
    (google_exceptions.PermissionDenied("Cloud Speech API has not been enabled"), SpeechErrorCode.NOT_ALLOWED),
    (google_exceptions.ServiceUnavailable("upstream connect error"), SpeechErrorCode.NETWORK),
    (google_exceptions.DeadlineExceeded("deadline exceeded"), SpeechErrorCode.NETWORK),
])
def test_recognition_errors_are_classified(error, code):
    with pytest.raises(SpeechInputError) as excinfo:
        recognize_google_sync(b"\x00\x00", client=FakeSpeechClient(error=error))

    assert excinfo.value.code == code


@pytest.mark.asyncio
async def test_google_input_delivers_recognized_utterance():
    recorder = FakeRecorder()
    speech_input = GoogleSpeechInput(language_code="en-US", recorder=recorder)
    speech_input._client = FakeSpeechClient(recognition(" Mostly Python. "))
    events = []
    speech_input.on_result = lambda text: events.append(("result", text))
    speech_input.on_end = lambda: events.append("end")

    assert speech_input.start()
    await asyncio.wait_for(speech_input._task, timeout=1.0)

    assert events == [("result", "Mostly Python."), "end"]
    assert recorder.calls == 1


@pytest.mark.asyncio
async def test_start_refused_from_on_start_never_opens_microphone():
    recorder = FakeRecorder(hold=1.0)
    speech_input = GoogleSpeechInput(recorder=recorder)
    speech_input._client = FakeSpeechClient(recognition("Second try."))
    errors = []
    speech_input.on_error = errors.append
    speech_input.on_start = speech_input.stop

    assert speech_input.start()
    refused = speech_input._task
    await asyncio.gather(refused, return_exceptions=True)

    assert recorder.calls == 0
    assert not speech_input.running
    assert errors == []

    # The next attempt captures normally and is the only capture
    recorder.hold = 0.0
    results = []
    speech_input.on_start = None
    speech_input.on_result = results.append
    assert speech_input.start()
    await asyncio.wait_for(speech_input._task, timeout=1.0)

    assert recorder.calls == 1
    assert results == ["Second try."]


@pytest.mark.asyncio
async def test_stop_during_capture_aborts_recording_thread():
    recorder = FakeRecorder(hold=5.0)
    speech_input = GoogleSpeechInput(recorder=recorder)
    errors = []
    speech_input.on_error = errors.append

    speech_input.start()
    assert await asyncio.to_thread(recorder.started.wait, 1.0)

    speech_input.stop()

    assert await asyncio.to_thread(recorder.finished.wait, 1.0)
    assert recorder.aborted
    assert not speech_input.running
    await asyncio.sleep(0)
    assert errors == []


class FakePlayerProcess:
    def __init__(self, args):
        self.args = args
        self.returncode = None
        self.terminated = False
        self._exited = asyncio.Event()

    async def wait(self):
        await self._exited.wait()
        return self.returncode

    def terminate(self):
        self.terminated = True
        self.exit(-15)

    def exit(self, code=0):
        self.returncode = code
        self._exited.set()


@pytest.fixture
def player(monkeypatch):
    """Replaces the audio player subprocess; returns the processes launched."""
    processes = []

    async def fake_exec(*args, **kwargs):
        process = FakePlayerProcess(args)
        processes.append(process)
        return process

    monkeypatch.setattr(asyncio, "create_subprocess_exec", fake_exec)
    return processes


@pytest.fixture
def output(monkeypatch):
    speech_output = GoogleSpeechOutput(players=("aplay",))

    async def no_voices():
        return []

    monkeypatch.setattr(speech_output, "_player", lambda: "/usr/bin/aplay")
    monkeypatch.setattr(speech_output, "_load_voices", no_voices)
    monkeypatch.setattr(speech_output, "_synthesize", lambda text, voice: b"RIFF0000WAVE")
    return speech_output


@pytest.mark.asyncio
async def test_playback_runs_player_and_removes_temp_file(output, player):
    speaking = asyncio.create_task(output.speak("Tell me about yourself."))
    await wait_until(lambda: player)

    process = player[0]
    wav_path = process.args[1]
    assert process.args[0] == "/usr/bin/aplay"
    assert os.path.exists(wav_path)

    process.exit(0)
    await asyncio.wait_for(speaking, timeout=1.0)

    assert not process.terminated
    assert not os.path.exists(wav_path)


@pytest.mark.asyncio
async def test_cancel_terminates_player(output, player):
    speaking = asyncio.create_task(output.speak("A long question about distributed systems."))
    await wait_until(lambda: player)
    wav_path = player[0].args[1]

    output.cancel()
    await asyncio.wait_for(speaking, timeout=1.0)

    assert player[0].terminated
    assert not os.path.exists(wav_path)


@pytest.mark.asyncio
async def test_missing_player_skips_synthesis(output, player, monkeypatch):
    synthesized = []
    monkeypatch.setattr(output, "_player", lambda: None)
    monkeypatch.setattr(output, "_synthesize", lambda text, voice: synthesized.append(text))

    await output.speak("Hello")

    assert player == []
    assert synthesized == []
