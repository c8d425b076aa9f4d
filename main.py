# main.py
import asyncio
import logging
from functools import lru_cache

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from assistant import AssistantAgent, create_openai_client
from config import Settings, get_settings
from gateway_manager import ApiGatewayManager
from models import AssistantRequest, AssistantResponse, ErrorResponse

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# 建立 FastAPI app
app = FastAPI(title="API Gateway Assistant")

# CORS 設定
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ===== Dependencies (單例模式) =====
@lru_cache()
def get_assistant_agent() -> AssistantAgent:
    """
    創建並緩存 agent
    OpenAI 與 Google 客戶端在第一次使用時才建立，不在 import 時建立
    """
    config = get_settings()
    return AssistantAgent(
        client=create_openai_client(config),
        model=config.model_name,
        manager=ApiGatewayManager(settings=config)
    )


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message).model_dump()
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed body → 400 instead of FastAPI's default 422"""
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body') or 'body'}: {err.get('msg')}"
        for err in exc.errors()
    )
    logger.warning(f"⚠️  Rejected malformed request: {problems}")
    return error_response(status.HTTP_400_BAD_REQUEST, f"Invalid request: {problems}")


@app.get("/")
async def root():
    """API 首頁"""
    return {
        "message": "API Gateway Assistant",
        "version": "1.0.0",
        "status": "running"
    }


@app.post(
    "/api/assistant",
    response_model=AssistantResponse,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    }
)
async def assistant(
    request: AssistantRequest,
    agent: AssistantAgent = Depends(get_assistant_agent),
    config: Settings = Depends(get_settings)
):
    """AI Agent 對話端點"""
    future = asyncio.get_running_loop().run_in_executor(None, agent.run, request.userMessage)
    done, _ = await asyncio.wait({future}, timeout=config.request_deadline_seconds)

    if not done:
        # the worker thread keeps running; its result is discarded
        future.cancel()
        logger.error(f"❌ Request exceeded {config.request_deadline_seconds}s deadline")
        return error_response(
            status.HTTP_504_GATEWAY_TIMEOUT,
            f"Request exceeded the {config.request_deadline_seconds:g}s deadline"
        )

    try:
        reply = future.result()
    except Exception as e:
        logger.exception(f"❌ Error in assistant route: {e}")
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e) or repr(e))

    return AssistantResponse(assistantResponse=reply)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
