"""프리뷰/내보내기 샌드박스.

- document: 브라우저 iframe 에 실리는 프리뷰 문서 (p5 + 캡처 스크립트). 프리뷰 API 가 사용한다.
- protocol: 호스트와 프레임 사이 메시지 (startRecording / videoReady / recordingError).
- session, recorder: 같은 메시지 규약의 호스트 측/프레임 측 asyncio 모델.
  HTTP 경로에서는 쓰지 않고, 캡처 스크립트가 따라야 하는 타이밍 규칙
  (d ms 이전 videoReady 금지, 결과는 한 번만, 녹화 중 재시작 무시)을 테스트로 고정하는 데 쓴다.
"""
