import json

import pytest

import server


@pytest.fixture
def client():
    server.app.config["TESTING"] = True
    with server.app.test_client() as c:
        yield c


SMALL = {
    "brainSizeX": 3, "brainSizeY": 3, "numGenes": 4, "eliteSize": 1,
    "numEpochs": 2, "worldWidth": 10, "worldHeight": 10, "numRooms": 0,
    "numRandomWalls": 0, "minRoomSize": 2, "maxRoomSize": 3,
    "numMovesPerTest": 5, "numWorldsToTest": 1, "numWorlds": 1, "seed": 5,
}


def wait_for_run():
    server._run_thread.join(timeout=60)
    assert not server._run_thread.is_alive()


def test_start_rejects_bad_config(client):
    resp = client.post("/start", json={"numGenes": 2, "eliteSize": 5})
    assert resp.status_code == 400
    assert resp.get_json()["status"] == "error"


def test_start_status_and_stream(client):
    resp = client.post("/start", json=SMALL)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "started"
    assert body["cfg"]["numGenes"] == 4

    wait_for_run()

    status = client.get("/status").get_json()
    assert status["running"] is False
    assert status["currentEpoch"] == 2
    assert status["totalEpochs"] == 2
    assert len(status["bestKinds"]) == 3
    assert status["simulation"]["step"] == 0

    text = client.get("/stream").get_data(as_text=True)
    events = [json.loads(line[len("data: "):])
              for line in text.splitlines() if line.startswith("data: ")]
    kinds = [e["type"] for e in events]
    assert kinds[0] == "connected"
    assert kinds[-1] == "done"
    epochs = [e for e in events if e["type"] == "epoch"]
    assert [e["epoch"] for e in epochs] == [0, 1]
    assert all(e["numEpochs"] == 2 for e in epochs)


def test_stop_cancels_run(client):
    resp = client.post("/start", json=dict(SMALL, numEpochs=10_000))
    assert resp.status_code == 200
    assert client.post("/stop").get_json()["status"] == "stopped"
    wait_for_run()
    status = client.get("/status").get_json()
    assert status["phase"] == "Cancelled"
    assert status["running"] is False


def test_cors_headers(client):
    resp = client.get("/status")
    assert resp.headers["Access-Control-Allow-Origin"] == "*"
    assert client.open("/start", method="OPTIONS").status_code == 200
