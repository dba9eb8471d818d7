"""
방송 오버레이 + 에디터 이벤트용 로컬 HTTP 서버.
/api/state JSON, / 오버레이 HTML, /api/events/* 로 에디터 이벤트 수신.
반드시 code_streamer_example.py 안에서 실행 (같은 프로세스·같은 루프에서 세션 공유).
"""

from __future__ import annotations

import logging
from typing import Any, Optional, TYPE_CHECKING

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from src.overlay.state import overlay_state
from src.trigger.events import DocumentSnapshot, TextChange

if TYPE_CHECKING:
    from src.stream.session import StreamSession

logger = logging.getLogger(__name__)
app = FastAPI(title="Code Streamer Overlay", docs_url=None, redoc_url=None)
app.state.session = None
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST"],
)


class DocumentEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str = ""
    language_id: str = Field("plaintext", alias="languageId")
    cursor_line: int = Field(0, alias="cursorLine")
    uri: str = ""

    def snapshot(self) -> DocumentSnapshot:
        return DocumentSnapshot(
            text=self.text,
            language_id=self.language_id or "plaintext",
            cursor_line=self.cursor_line,
            uri=self.uri,
        )


class ChangeEvent(DocumentEvent):
    inserted_text: str = Field("", alias="insertedText")
    removed_length: int = Field(0, alias="removedLength")


class DiagnosticsEvent(DocumentEvent):
    error_count: int = Field(0, alias="errorCount")


def attach_session(session: Optional["StreamSession"]) -> None:
    app.state.session = session


def _session(request: Request) -> "StreamSession":
    session = request.app.state.session
    if session is None:
        raise HTTPException(status_code=503, detail="session not attached")
    return session


def _overlay(request: Request) -> dict[str, Any]:
    session = request.app.state.session
    return session.feed.state if session is not None else overlay_state


def _decision(decision: Any) -> JSONResponse:
    return JSONResponse({"decision": decision.value if decision is not None else None})


@app.get("/api/state")
def get_state(request: Request):
    """오버레이: 최근 채팅, 알림, 누적 후원, 시청자 수."""
    state = _overlay(request)
    return JSONResponse({
        "messages": list(state.get("messages") or []),
        "notices": list(state.get("notices") or []),
        "total_donations": int(state.get("total_donations") or 0),
        "viewer_count": int(state.get("viewer_count") or 0),
    })


@app.get("/api/viewers")
def get_viewers(request: Request):
    session = _session(request)
    return JSONResponse({"viewers": [v.to_dict() for v in session.registry.viewers]})


@app.post("/api/viewers/refresh")
def refresh_viewers(request: Request):
    session = _session(request)
    viewers = session.refresh_viewers()
    logger.info("Overlay API: 시청자 카탈로그 갱신 (%d명)", len(viewers))
    return JSONResponse({"ok": True, "count": len(viewers)})


@app.post("/api/clear")
def clear_chat(request: Request):
    """채팅/알림 오버레이 수동 클리어."""
    state = _overlay(request)
    state["messages"] = []
    state["notices"] = []
    logger.info("Overlay API: clear")
    return JSONResponse({"ok": True})


# 에디터 이벤트: async def 라서 스케줄러가 실행 중 루프에 타이머·작업을 올릴 수 있음

@app.post("/api/events/change")
async def on_change(body: ChangeEvent, request: Request):
    session = _session(request)
    change = TextChange(inserted_text=body.inserted_text, removed_length=body.removed_length)
    return _decision(session.scheduler.on_text_change(body.snapshot(), change))


@app.post("/api/events/save")
async def on_save(body: DocumentEvent, request: Request):
    session = _session(request)
    return _decision(session.scheduler.on_save(body.snapshot()))


@app.post("/api/events/diagnostics")
async def on_diagnostics(body: DiagnosticsEvent, request: Request):
    session = _session(request)
    return _decision(session.scheduler.on_diagnostics(body.snapshot(), body.error_count))


OVERLAY_HTML = """<!DOCTYPE html>
<html lang="ko">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Code Streamer Chat</title>
  <style>
    * { margin: 0; padding: 0; box-sizing: border-box; }
    ::-webkit-scrollbar { display: none; }
    body {
      font-family: "Malgun Gothic", sans-serif;
      background-color: transparent;
      height: 100vh;
      padding: 12px;
      display: flex;
      flex-direction: column;
      overflow: hidden;
      color: #f1f5f9;
    }
    .stats { font-size: 13px; margin-bottom: 8px; opacity: 0.85; }
    .notices { position: fixed; top: 12px; right: 12px; max-width: 40vw; }
    .notice { padding: 6px 10px; margin-bottom: 6px; border-radius: 8px; font-size: 13px; background: rgba(30, 64, 175, 0.8); }
    .notice.warning { background: rgba(185, 28, 28, 0.85); }
    #chat { flex: 1; display: flex; flex-direction: column; justify-content: flex-end; }
    .row {
      margin-bottom: 8px;
      padding: 8px 12px;
      border-radius: 12px;
      font-size: 15px;
      background: rgba(40, 45, 60, 0.85);
      animation: slideUp 0.3s ease forwards;
    }
    .row.hater { border-left: 4px solid #f87171; }
    .row.pro { border-left: 4px solid #34d399; }
    .row.system { background: rgba(120, 53, 15, 0.85); }
    .row .name { font-weight: bold; color: #bae6fd; margin-right: 6px; }
    .row .tag { font-size: 11px; color: #cbd5e1; margin-right: 6px; }
    .row .donation { color: #fde047; margin-left: 6px; }
    @keyframes slideUp { from { opacity: 0; transform: translateY(10px); } to { opacity: 1; transform: translateY(0); } }
  </style>
</head>
<body>
  <div class="stats" id="stats"></div>
  <div class="notices" id="notices"></div>
  <div id="chat"></div>
  <script>
    const NOTICE_AGE = 10;

    function escapeHtml(text) {
      if (!text) return "";
      return String(text).replace(/&/g, "&amp;").replace(/</g, "&lt;")
        .replace(/>/g, "&gt;").replace(/"/g, "&quot;").replace(/'/g, "&#039;");
    }

    function render() {
      fetch("/api/state")
        .then(function(r) { return r.json(); })
        .then(function(data) {
          document.getElementById("stats").innerText =
            "👀 " + (data.viewer_count || 0).toLocaleString() + "  💰 " + (data.total_donations || 0).toLocaleString();

          var chat = document.getElementById("chat");
          var ids = new Set();
          (data.messages || []).forEach(function(m) {
            ids.add("m-" + m.id);
            if (document.getElementById("m-" + m.id)) return;
            var el = document.createElement("div");
            el.id = "m-" + m.id;
            el.className = "row " + (m.type || "newbie");
            if (m.messageBackground) el.style.background = m.messageBackground;
            el.innerHTML = '<span class="name">' + escapeHtml((m.avatar || "") + " " + m.author) + '</span>' +
              (m.tag ? '<span class="tag">' + escapeHtml(m.tag) + '</span>' : "") +
              escapeHtml(m.text) +
              (m.donation ? '<span class="donation">💰' + m.donation + '</span>' : "");
            chat.appendChild(el);
          });
          Array.from(chat.children).forEach(function(child) {
            if (!ids.has(child.id)) chat.removeChild(child);
          });

          var now = Date.now() / 1000;
          document.getElementById("notices").innerHTML = (data.notices || [])
            .filter(function(n) { return now - (n.ts || now) <= NOTICE_AGE; })
            .map(function(n) { return '<div class="notice ' + n.level + '">' + escapeHtml(n.text) + '</div>'; })
            .join("");
        })
        .catch(function(err) { console.error(err); });
    }

    setInterval(render, 500);
    render();
  </script>
</body>
</html>
"""


@app.get("/", response_class=HTMLResponse)
def overlay_page():
    """OBS 브라우저 소스에 넣을 URL. 채팅·알림을 폴링해 표시."""
    return HTMLResponse(OVERLAY_HTML)
