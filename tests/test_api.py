"""
API tests over an in-memory SQLite database:
1. Generation endpoints (history, activity, saved session, errors)
2. History edits
3. Activity / feedback
4. Admin: links, teachers, backup/restore, credential swap
5. Media endpoints
"""

import base64
import json
import struct
from types import SimpleNamespace

from conftest import ServiceError, completion, sections_json
from generation.error_messages import MSG_BUSY, MSG_PERMISSION

ADMIN_FORM = {"jenjang": "SD", "kelas": "4", "mata_pelajaran": "Matematika", "fase": "B"}
SOAL_FORM = {
    "jenjang": "SMP",
    "kelas": "8",
    "mata_pelajaran": "IPA",
    "topik_materi": "Sistem Pernapasan",
    "jumlah_soal_total": 20,
    "jumlah_pg": 15,
    "jumlah_uraian": 5,
    "sekolah": "SMP Negeri 1",
    "nama_guru": "Siti Rahma",
}
TWO_SECTIONS = sections_json(
    {"id": "s1", "title": "Naskah Soal", "content": "<ol></ol>"},
    {"id": "s2", "title": "Kunci Jawaban & Pembahasan", "content": "<p>A</p>"},
)


def generate(client, sdk, path="/generation/admin", form=ADMIN_FORM, user="Budi"):
    sdk.chat.completions.create.return_value = completion(TWO_SECTIONS)
    headers = {"X-User-Name": user} if user else {}
    return client.post(path, json=form, headers=headers)


class TestService:

    def test_health_and_root(self, client):
        assert client.get("/health").json()["status"] == "healthy"
        assert "/generation" in client.get("/").json()["endpoints"].values()


class TestGenerationEndpoints:

    def test_admin_generation_stored_and_logged(self, client, sdk):
        response = generate(client, sdk)

        assert response.status_code == 200
        body = response.json()
        assert body["module_type"] == "admin"
        assert [s["id"] for s in body["sections"]] == ["s1", "s2"]

        history = client.get("/history").json()
        assert len(history) == 1
        assert history[0]["id"] == body["history_id"]
        assert history[0]["form_data"]["mata_pelajaran"] == "Matematika"

        activity = client.get("/activity").json()
        assert activity[0]["user"] == "Budi"
        assert activity[0]["details"] == "Matematika - Kelas 4"

    def test_no_activity_without_user_header(self, client, sdk):
        generate(client, sdk, user=None)

        assert client.get("/activity").json() == []
        assert len(client.get("/history").json()) == 1

    def test_soal_total_violation_rejected_before_calling_model(self, client, sdk):
        form = dict(SOAL_FORM, jumlah_pg=20, jumlah_uraian=10)

        response = client.post("/generation/soal", json=form)

        assert response.status_code == 422
        assert response.json()["detail"] == "Jumlah soal per jenis (30) melebihi total soal standar (20)."
        sdk.chat.completions.create.assert_not_awaited()

    def test_soal_header_and_signature(self, client, sdk):
        response = generate(client, sdk, path="/generation/soal", form=SOAL_FORM)

        sections = response.json()["sections"]
        assert "SMP Negeri 1" in sections[0]["content"]
        assert "Siti Rahma" in sections[1]["content"]

    def test_permission_error_maps_to_403(self, client, sdk):
        sdk.chat.completions.create.side_effect = ServiceError("Permission denied", 403)

        response = client.post("/generation/admin", json=ADMIN_FORM)

        assert response.status_code == 403
        assert response.json()["detail"] == MSG_PERMISSION
        assert client.get("/history").json() == []

    def test_busy_after_retries_maps_to_503(self, client, sdk):
        sdk.chat.completions.create.side_effect = ServiceError("503 UNAVAILABLE", 503)

        response = client.post("/generation/ecourse", json={"topik_ecourse": "Fotosintesis"})

        assert response.status_code == 503
        assert response.json()["detail"] == MSG_BUSY
        assert sdk.chat.completions.create.await_count == 4

    def test_suggestions(self, client, sdk):
        sdk.chat.completions.create.return_value = completion("- Bilangan\n- Pecahan")

        response = client.post(
            "/generation/suggestions/topics",
            json={"jenjang": "SD", "kelas": "4", "mata_pelajaran": "Matematika"},
        )

        assert response.json() == {"markdown": "- Bilangan\n- Pecahan"}


class TestHistory:

    def test_edit_and_delete_section(self, client, sdk):
        history_id = generate(client, sdk).json()["history_id"]

        edited = client.patch(f"/history/{history_id}/sections/s2", json={"content": "<p>B</p>"})
        assert edited.status_code == 200
        assert edited.json()["generated_sections"][1]["content"] == "<p>B</p>"

        removed = client.delete(f"/history/{history_id}/sections/s1")
        assert [s["id"] for s in removed.json()["generated_sections"]] == ["s2"]

        assert client.patch(f"/history/{history_id}/sections/nope", json={"content": "x"}).status_code == 404

    def test_delete_entry_and_clear(self, client, sdk):
        first = generate(client, sdk).json()["history_id"]
        generate(client, sdk)

        assert client.delete(f"/history/{first}").status_code == 204
        assert client.get(f"/history/{first}").status_code == 404
        assert len(client.get("/history").json()) == 1

        client.delete("/history")
        assert client.get("/history").json() == []

    def test_saved_session_lifecycle(self, client, sdk):
        payload = {
            "module_type": "soal",
            "form_data": {"mata_pelajaran": "IPA"},
            "generated_sections": [{"id": "a", "title": "Naskah Soal", "content": "<p>x</p>"}],
        }

        assert client.put("/history/session", json=payload).status_code == 200
        assert client.get("/history/session").json()["module_type"] == "soal"

        restored = client.post("/history/session/restore")
        assert restored.status_code == 200
        assert restored.json()["generated_sections"][0]["id"] == "a"
        assert client.get("/history/session").json() is None
        assert client.post("/history/session/restore").status_code == 404

    def test_new_generation_clears_saved_session(self, client, sdk):
        client.put("/history/session", json={
            "module_type": "admin",
            "form_data": {},
            "generated_sections": [{"id": "a", "title": "ATP", "content": "<p>x</p>"}],
        })

        generate(client, sdk)

        assert client.get("/history/session").json() is None


class TestActivityAndFeedback:

    def test_csv_export(self, client):
        client.post("/activity", json={"user": "Budi", "module_type": "soal", "details": "IPA - Kelas 8"})

        response = client.get("/activity/export.csv")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        lines = response.text.strip().splitlines()
        assert lines[0] == "Waktu,Pengguna,Modul,Detail"
        assert lines[1].endswith("Budi,soal,IPA - Kelas 8")

    def test_feedback_rating_bounds(self, client):
        assert client.post("/feedback", json={"user": "Ani", "rating": 6}).status_code == 422

        created = client.post("/feedback", json={"user": "Ani", "rating": 5, "comment": "Mantap"})
        assert created.status_code == 201
        assert client.get("/feedback").json()[0]["comment"] == "Mantap"


class TestAdmin:

    def test_links_tracking(self, client):
        link = client.post("/admin/links", json={"user_name": "Budi"}).json()

        assert link["id"].startswith("user_")
        assert link["url"].endswith(f"/?ref={link['id']}")
        assert link["usage_count"] == 0

        client.post("/admin/links/track", params={"ref": link["id"]})
        tracked = client.post("/admin/links/track", params={"ref": link["id"]}).json()
        assert tracked == {"tracked": True, "usage_count": 2}
        assert client.post("/admin/links/track", params={"ref": "user_unknown"}).json()["tracked"] is False

        assert client.delete(f"/admin/links/{link['id']}").status_code == 204
        assert client.get("/admin/links").json() == []

    def test_teachers_deduplicated(self, client):
        client.post("/admin/teachers", json={"names": ["Budi", "Siti"]})
        result = client.post("/admin/teachers", json={"names": ["Siti", " Ani ", ""]}).json()

        assert result == {"added": 1, "teachers": ["Budi", "Siti", "Ani"]}

    def test_teachers_csv_import(self, client):
        csv_text = "nama\nBudi\nSiti\nBudi\n\n"

        result = client.post(
            "/admin/teachers/import-csv",
            files={"file": ("guru.csv", csv_text.encode(), "text/csv")},
        ).json()

        assert result == {"added": 2, "teachers": ["Budi", "Siti"]}

    def test_backup_and_restore(self, client, sdk):
        generate(client, sdk)
        client.post("/feedback", json={"user": "Budi", "rating": 4})
        client.post("/admin/links", json={"user_name": "Budi"})
        client.post("/admin/teachers", json={"names": ["Budi"]})

        response = client.get("/admin/backup")
        backup = response.json()
        assert "guru_inovatif_backup_" in response.headers["content-disposition"]
        assert backup["version"] == "1.1"
        assert backup["history"][0]["mata_pelajaran"] == "Matematika"
        assert backup["shareableLinks"][0]["userName"] == "Budi"

        client.delete("/history")
        restored = client.post(
            "/admin/restore",
            files={"file": ("backup.json", json.dumps(backup).encode(), "application/json")},
        )

        assert restored.status_code == 200
        assert restored.json()["restored"] == {
            "history": 1, "activityLog": 1, "feedback": 1, "shareableLinks": 1, "registeredTeachers": 1,
        }
        history = client.get("/history").json()
        assert history[0]["form_data"]["mata_pelajaran"] == "Matematika"
        assert history[0]["generated_sections"][0]["id"] == "s1"
        assert client.get("/admin/teachers").json() == ["Budi"]

    def test_restore_rejects_invalid_file(self, client):
        for content in (b"bukan json", json.dumps({"history": []}).encode()):
            response = client.post(
                "/admin/restore",
                files={"file": ("backup.json", content, "application/json")},
            )
            assert response.status_code == 400
            assert response.json()["detail"] == "File backup tidak valid atau rusak."

    def test_restore_keeps_tables_without_data(self, client):
        client.post("/admin/teachers", json={"names": ["Budi"]})
        backup = {"version": "1.1", "timestamp": "2026-01-01T00:00:00Z", "registeredTeachers": []}

        client.post("/admin/restore", files={"file": ("b.json", json.dumps(backup).encode(), "application/json")})

        assert client.get("/admin/teachers").json() == ["Budi"]

    def test_restore_rejects_records_history_cannot_serve(self, client, sdk):
        generate(client, sdk)
        bad_records = (
            {"history": [{"module_type": "video", "generated_sections": []}]},
            {"history": [{"module_type": "admin", "generated_sections": [{"title": "tanpa id"}]}]},
            {"activityLog": [{"user": "Budi", "module_type": "video"}]},
        )

        for extra in bad_records:
            backup = {"version": "1.1", "timestamp": "2026-01-01T00:00:00Z", **extra}
            response = client.post(
                "/admin/restore",
                files={"file": ("b.json", json.dumps(backup).encode(), "application/json")},
            )
            assert response.status_code == 400
            assert response.json()["detail"] == "File backup tidak valid atau rusak."

        history = client.get("/history")
        assert history.status_code == 200
        assert history.json()[0]["module_type"] == "admin"

    def test_api_key_swap(self, client, generation_client):
        assert client.post("/admin/api-key", json={"api_key": " sk-new "}).status_code == 204

        assert generation_client.resolve_api_key() == "sk-new"


class TestMediaEndpoints:

    def test_image(self, client, sdk):
        sdk.images.generate.return_value = SimpleNamespace(data=[SimpleNamespace(b64_json="aW1n")])

        response = client.post("/media/image", json={"prompt": "Peta Indonesia"})

        assert response.json() == {"data_url": "data:image/png;base64,aW1n"}

    def test_image_edit_rejects_bad_base64(self, client, sdk):
        response = client.post("/media/image/edit", json={"image_base64": "%%%", "prompt": "ubah"})

        assert response.status_code == 400
        sdk.images.edit.assert_not_awaited()

    def test_speech(self, client, sdk):
        sdk.audio.speech.create.return_value = SimpleNamespace(content=struct.pack("<2h", 16384, -16384))

        body = client.post("/media/speech", json={"text": "Halo"}).json()

        assert body["sample_rate"] == 24000
        assert body["samples"] == [[0.5, -0.5]]

    def test_transcribe_upload(self, client, sdk):
        sdk.audio.transcriptions.create.return_value = SimpleNamespace(text="selamat pagi anak-anak")

        response = client.post(
            "/media/transcribe",
            files={"file": ("rekaman.webm", b"\x1a\x45\xdf\xa3", "audio/webm")},
        )

        assert response.json() == {"text": "selamat pagi anak-anak"}
        assert sdk.audio.transcriptions.create.await_args.kwargs["file"][0] == "rekaman.webm"

    def test_video_frames_analysis(self, client, sdk):
        sdk.chat.completions.create.return_value = completion("Video menunjukkan percobaan.")
        frame = base64.b64encode(b"jpeg").decode()

        response = client.post(
            "/media/video/analyze-frames",
            json={"frames": [{"data": frame}, {"data": frame}], "prompt": "Ringkas video"},
        )

        assert response.json()["text"] == "Video menunjukkan percobaan."
        parts = sdk.chat.completions.create.await_args.kwargs["messages"][0]["content"]
        assert [p["type"] for p in parts] == ["image_url", "image_url", "text"]

    def test_missing_api_key_is_500(self, client, generation_client, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        generation_client.set_api_key(None)

        response = client.post("/media/image", json={"prompt": "apa saja"})

        assert response.status_code == 500
        assert "OPENAI_API_KEY" in response.json()["detail"]
