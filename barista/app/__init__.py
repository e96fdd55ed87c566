"""
App layer: UI 서버 (FastAPI + HTMX).

역할:
- 레시피 폼, 세션 폴링, 채팅 UI
- AI Provider 호출 (레시피 텍스트, 이미지, grounding 채팅)
- ⚠️ 세션 liveness 로직 없음 (core에 위임)

주의: 폴더 구분
- barista/app/templates/ → Jinja2 HTML (HTMX)
"""
