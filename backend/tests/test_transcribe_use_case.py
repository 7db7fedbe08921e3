from __future__ import annotations

import io
from pathlib import Path

import pytest

from domain.errors import InvalidConfiguration, MaterializationFailed, ProbeError, ProcessError
from domain.models import TranscriptionOptions
from use_cases.transcribe import PipelineSettings, TranscribeAudioUseCase, TranscribeRequest
from use_cases.worker_pool import WorkerPool


class FailingProber:
    def probe_duration_ms(self, input_path: str) -> float:
        raise ProbeError("unable to parse duration")


def _use_case(media, transcription, progress, run_dir: Path, prober=None, **settings):
    return TranscribeAudioUseCase(
        transcoder=media,
        prober=prober or media,
        transcription=transcription,
        progress=progress,
        settings=PipelineSettings(
            temp_dir=str(run_dir),
            options=TranscriptionOptions(model="fake-model"),
            materialize_pool=WorkerPool(2, name="materialize"),
            transcribe_pool=WorkerPool(5, name="transcribe"),
            **settings,
        ),
    )


def _request(name: str = "meeting.m4a") -> TranscribeRequest:
    return TranscribeRequest(source=io.BytesIO(b"raw-audio"), filename=name)


def test_short_clip_is_one_segment_verbatim(fake_media_cls, fake_transcription_cls, progress, run_dir):
    transcription = fake_transcription_cls(texts={0: " Hello there."})
    use_case = _use_case(fake_media_cls(duration_ms=5000), transcription, progress, run_dir)

    result = use_case.execute(_request())

    assert result.text == " Hello there."
    assert result.chunk_count == 1
    assert result.failed_indices == []
    assert list(run_dir.iterdir()) == []


def test_long_recording_assembles_in_order_and_reaps(
    fake_media_cls, fake_transcription_cls, progress, run_dir
):
    media = fake_media_cls(duration_ms=250000)
    transcription = fake_transcription_cls(delays={0: 0.1})
    use_case = _use_case(media, transcription, progress, run_dir)

    result = use_case.execute(_request())

    assert result.text == "<0><1><2>"
    assert result.chunk_count == 3
    assert list(run_dir.iterdir()) == []
    assert progress.stages[0] == "preprocessing"
    assert progress.stages[-2:] == ["assembled", "reaped"]
    assert {"planned", "materializing", "transcribing"} <= set(progress.stages)


def test_failed_segments_are_skipped(fake_media_cls, fake_transcription_cls, progress, run_dir):
    media = fake_media_cls(duration_ms=250000, fail_segments={2})
    transcription = fake_transcription_cls(fail={0})
    use_case = _use_case(media, transcription, progress, run_dir)

    result = use_case.execute(_request())

    assert result.text == "<1>"
    assert result.failed_indices == [0, 2]
    assert list(run_dir.iterdir()) == []


def test_exact_multiple_of_step_skips_the_empty_tail(fake_media_cls, fake_transcription_cls, progress, run_dir):
    # 238s = 2 * 119s step, so the third window starts at the very end
    media = fake_media_cls(duration_ms=238000)
    use_case = _use_case(media, fake_transcription_cls(), progress, run_dir)

    result = use_case.execute(_request())

    assert result.chunk_count == 3
    assert result.text == "<0><1>"
    assert result.failed_indices == []
    assert len(media.segment_calls) == 2
    assert list(run_dir.iterdir()) == []


@pytest.mark.parametrize(
    "media_kwargs, use_failing_prober, expected",
    [
        ({"fail_transcode": True}, False, ProcessError),
        ({}, True, ProbeError),
        ({"duration_ms": 250000, "fail_segments": {0, 1, 2}}, False, MaterializationFailed),
    ],
)
def test_fatal_errors_abort_and_still_reap(
    fake_media_cls, fake_transcription_cls, progress, run_dir, media_kwargs, use_failing_prober, expected
):
    media = fake_media_cls(**media_kwargs)
    prober = FailingProber() if use_failing_prober else None
    use_case = _use_case(media, fake_transcription_cls(), progress, run_dir, prober=prober)

    with pytest.raises(expected):
        use_case.execute(_request())

    assert list(run_dir.iterdir()) == []
    assert progress.stages[-1] == "reaped"


def test_invalid_chunking_is_rejected_before_io(fake_media_cls, fake_transcription_cls, progress, run_dir):
    with pytest.raises(InvalidConfiguration):
        _use_case(fake_media_cls(), fake_transcription_cls(), progress, run_dir,
                  window_ms=1000, overlap_ms=1000)
    assert list(run_dir.iterdir()) == []


def test_upload_filename_cannot_escape_temp_dir(fake_media_cls, fake_transcription_cls, progress, tmp_path):
    run_dir = tmp_path / "run"
    run_dir.mkdir()
    use_case = _use_case(fake_media_cls(), fake_transcription_cls(), progress, run_dir)

    use_case.execute(_request("../../etc/evil.wav"))

    assert sorted(p.name for p in tmp_path.iterdir()) == ["run"]
