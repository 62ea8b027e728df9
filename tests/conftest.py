import pytest


@pytest.fixture
def make_track():
    def _make(data, wave="sine", mixer=(1, 0, 0, 0, 0), adsr=(0, 0, 1, 0),
              portamento=0, cutoff=0, **extra):
        track = {
            "wave": wave,
            "mixer": list(mixer),
            "adsr": list(adsr),
            "portamento": portamento,
            "cutoffDuration": cutoff,
            "data": list(data),
        }
        track.update(extra)
        return track
    return _make


@pytest.fixture
def make_sequence(make_track):
    def _make(*tracks, bpm=60, ppqn=1, gaps=(0, 0)):
        tracks = tracks or (make_track([0, 4, 69, 127]),)
        return {"bpm": bpm, "ppqn": ppqn, "gaps": list(gaps), "tracks": list(tracks)}
    return _make
