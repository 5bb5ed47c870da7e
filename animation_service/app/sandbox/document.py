"""샌드박스 프리뷰 문서(HTML) 생성.

스케치 코드는 서버에서 실행하지 않고 그대로 문서에 삽입한다.
문서는 CSP sandbox allow-scripts 로 서빙되어 호스트 origin 과 분리되며,
호스트와는 postMessage 로만 통신한다.
"""

from __future__ import annotations

import re
from string import Template


P5_SCRIPT_URL = "https://cdnjs.cloudflare.com/ajax/libs/p5.js/1.4.0/p5.js"

# allow-same-origin 을 주지 않으므로 프레임은 opaque origin 으로 동작한다.
PREVIEW_CSP = "sandbox allow-scripts"

CAPTURE_FPS = 30
CAPTURE_TIMESLICE_MS = 200
CAPTURE_MIME_TYPE = "video/webm;codecs=vp9"
DEFAULT_DURATION_MS = 5000

_SCRIPT_CLOSE = re.compile(r"</(script)", re.IGNORECASE)

_DOCUMENT_TEMPLATE = Template(
    """<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <style>
      body {
        margin: 0;
        overflow: hidden;
        background-color: $background;
        display: flex;
        align-items: center;
        justify-content: center;
      }
    </style>
  </head>
  <body>
    <script src="$p5_url"></script>
    <script>
      window.addEventListener('load', function () {
        if (typeof p5 !== 'undefined') {
          p5.prototype._ondeviceorientation = function () {};
          p5.prototype._ondevicemotion = function () {};
        }
      });

      var canvas = null;
      var mediaRecorder = null;
      var recordedChunks = [];
      var recordingTimer = null;

      function reportError(message) {
        window.parent.postMessage({ action: 'recordingError', error: message }, '*');
      }

      function startRecording(duration) {
        if (mediaRecorder && mediaRecorder.state !== 'inactive') {
          return;
        }
        canvas = document.querySelector('canvas');
        if (!canvas) {
          reportError('Canvas not initialized');
          return;
        }
        recordedChunks = [];
        try {
          var stream = canvas.captureStream($fps);
          if (MediaRecorder.isTypeSupported('$mime_type')) {
            mediaRecorder = new MediaRecorder(stream, { mimeType: '$mime_type' });
          } else {
            mediaRecorder = new MediaRecorder(stream);
          }
          mediaRecorder.ondataavailable = function (e) {
            if (e.data.size > 0) {
              recordedChunks.push(e.data);
            }
          };
          mediaRecorder.onstop = function () {
            var blob = new Blob(recordedChunks, { type: 'video/webm' });
            window.parent.postMessage({ action: 'videoReady', videoData: blob }, '*');
          };
          mediaRecorder.onerror = function (event) {
            clearTimeout(recordingTimer);
            mediaRecorder.onstop = null;
            reportError('MediaRecorder error: ' + event.name);
          };
          mediaRecorder.start($timeslice);
          recordingTimer = setTimeout(function () {
            if (mediaRecorder && mediaRecorder.state !== 'inactive') {
              mediaRecorder.stop();
            }
          }, duration);
        } catch (err) {
          reportError('Failed to start recording: ' + err.message);
        }
      }

      window.addEventListener('message', function (event) {
        if (event.source !== window.parent) {
          return;
        }
        if (event.data && event.data.action === 'startRecording') {
          startRecording(event.data.duration || $default_duration);
        }
      });

      try {
$code
      } catch (e) {
        document.body.innerHTML = '<div style="color:$error_color;padding:20px;font-family:system-ui;">Error in sketch: ' + e.message + '</div>';
        reportError('Sketch error: ' + e.message);
      }
    </script>
  </body>
</html>
"""
)


def escape_sketch_code(code: str) -> str:
    """스케치 안의 ``</script`` 가 인라인 스크립트를 닫지 않도록 ``<\\/script`` 로 바꾼다."""

    return _SCRIPT_CLOSE.sub(r"<\\/\1", code)


def build_preview_document(code: str, *, dark_mode: bool = False) -> str:
    return _DOCUMENT_TEMPLATE.substitute(
        background="#1f2937" if dark_mode else "#ffffff",
        error_color="#f87171" if dark_mode else "#dc2626",
        p5_url=P5_SCRIPT_URL,
        fps=CAPTURE_FPS,
        mime_type=CAPTURE_MIME_TYPE,
        timeslice=CAPTURE_TIMESLICE_MS,
        default_duration=DEFAULT_DURATION_MS,
        code=escape_sketch_code(code),
    )
