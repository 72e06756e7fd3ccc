import time

from fastapi.testclient import TestClient
from backend.api.main import app


def post_sample(client, **payload):
    r = client.post("/api/samples", json=payload)
    assert r.status_code == 200, r.text
    return r.json()


def test_samples_require_running_service():
    client = TestClient(app)
    r = client.post("/api/samples", json={"name": "elec", "value": 1})
    assert r.status_code == 503


def test_power_up_sequence_over_http():
    with TestClient(app) as client:
        post_sample(client, name="potentiometer_captain", value=1)
        assert post_sample(client, name="elec", value=1)["state"] == "Selftest"

        display = client.get("/api/display").json()
        assert display["selftest_visible"] is True
        assert display["visibility"] == "hidden"
        assert display["overlay_text"]

        r = client.post("/api/tick", json={"dt": 15.0})
        assert r.status_code == 200
        assert r.json()["state"] == "On"
        display = client.get("/api/display").json()
        assert display["visibility"] == "visible"
        assert display["time"] == 15.0


def test_signal_word_sample_reaches_altitude_readout():
    with TestClient(app) as client:
        post_sample(client, name="altitude", value=10450, ssm="NORMAL_OPERATION")
        wheels = client.get("/api/display").json()["instruments"]["altitude"]["wheels"]
        assert [w["text"] for w in wheels] == ["50", "4", "0", "1"]


def test_word_channel_value_defaults_to_normal_operation():
    with TestClient(app) as client:
        post_sample(client, name="altitude", value=10450)
        wheels = client.get("/api/display").json()["instruments"]["altitude"]["wheels"]
        assert [w["text"] for w in wheels] == ["50", "4", "0", "1"]


def test_invalid_samples_rejected():
    with TestClient(app) as client:
        bad = [
            {"value": 1},
            {"name": "elec"},
            {"name": "speed", "value": 150, "ssm": "bogus"},
            {"name": "speed", "value": 150, "ssm": 7},
            {"name": "elec", "value": "abc"},
            {"name": "speed", "value": 1e40, "ssm": 3},
        ]
        for payload in bad:
            r = client.post("/api/samples", json=payload)
            assert r.status_code == 400, payload


def test_invalid_tick_rejected():
    with TestClient(app) as client:
        assert client.post("/api/tick", json={"dt": -1}).status_code == 400
        assert client.post("/api/tick", json={"dt": "soon"}).status_code == 400


def test_reset_endpoint():
    with TestClient(app) as client:
        r = client.post("/api/reset")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"


def test_websocket_streams_frames():
    with TestClient(app) as client:
        with client.websocket_connect("/ws/display") as ws:
            first = ws.receive_json()
            assert first["state"] == "Off"
            post_sample(client, name="potentiometer_captain", value=1)
            post_sample(client, name="elec", value=1)
            ws.receive_json()
            frame = ws.receive_json()
            assert frame["state"] == "Selftest"
            assert frame["selftest_visible"] is True


def test_sim_source_feeds_display():
    with TestClient(app) as client:
        app.state.sim.publish("altitude", 2500.0)
        deadline = time.time() + 3.0
        altitude = None
        while time.time() < deadline:
            altitude = client.get("/api/display").json()["instruments"]["altitude"]
            if not altitude["failed"]:
                break
            time.sleep(0.05)
        assert altitude is not None
        assert altitude["failed"] is False
        assert [w["text"] for w in altitude["wheels"]] == ["00", "5", "2", ""]


def test_landing_system_text_over_http():
    with TestClient(app) as client:
        post_sample(client, name="nav_ident", value="IMU")
        post_sample(client, name="nav_freq", value=109.5)
        info = client.get("/api/display").json()["instruments"]["landing_system"]
        assert info["ident"] == "IMU"
        assert (info["frequency_leading"], info["frequency_trailing"]) == ("109", ".50")
