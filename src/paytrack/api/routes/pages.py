import os
from typing import Annotated, Any

from fastapi import APIRouter, Depends, File, Request, Response, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from paytrack.api.dependencies import get_workflow, read_upload
from paytrack.api.schemas import to_http_error
from paytrack.core import configuration
from paytrack.domain.review import EDITABLE_KEYS, build_review_context
from paytrack.errors import InvalidInput, PayTrackError
from paytrack.models import ExtractionStatus, SyncOutcome
from paytrack.services.workflow import ReceiptWorkflow

router = APIRouter()

templates_dir = os.path.abspath(
    os.path.join(os.path.dirname(__file__), "..", "..", "web", "templates")
)
templates = Jinja2Templates(directory=templates_dir)

_SAVED_MESSAGES = {
    SyncOutcome.DISPATCHED.value: "Transaction successfully sent to Google Sheet tracking! View it now?",
    SyncOutcome.SIMULATED.value: "Transaction recorded locally (no webhook configured). View the sheet now?",
}


def _render_index(
    request: Request,
    workflow: ReceiptWorkflow,
    *,
    saved: str | None = None,
    notice: str | None = None,
    field_errors: dict[str, str] | None = None,
    status_code: int = 200,
) -> HTMLResponse:
    state = workflow.state
    review: dict[str, Any] | None = None
    if state.record is not None:
        review = build_review_context(
            state.record,
            saving=state.status is ExtractionStatus.SAVING,
            field_errors=field_errors,
        )
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "state": state,
            "status": state.status.value,
            "review": review,
            "activity": state.activity.entries(),
            "history": state.history,
            "sheet_url": state.settings.sheet_url,
            "saved_message": _SAVED_MESSAGES.get(saved or ""),
            "notice": notice,
            "model": workflow.extractor.model,
        },
        status_code=status_code,
    )


@router.get("/", response_class=HTMLResponse)
async def index(
    request: Request,
    workflow: Annotated[ReceiptWorkflow, Depends(get_workflow)],
    saved: str | None = None,
) -> HTMLResponse:
    return _render_index(request, workflow, saved=saved)


@router.post("/upload", response_class=HTMLResponse)
async def upload(
    request: Request,
    workflow: Annotated[ReceiptWorkflow, Depends(get_workflow)],
    file: Annotated[UploadFile, File()],
) -> Response:
    data = await read_upload(file)
    try:
        await workflow.upload(data, file.content_type or "")
    except InvalidInput:
        # Reported inline through state.error.
        return _render_index(request, workflow, status_code=400)
    except PayTrackError as exc:
        return _render_index(request, workflow, notice=str(exc), status_code=to_http_error(exc).status_code)
    return RedirectResponse(url="/", status_code=303)


@router.post("/review", response_class=HTMLResponse)
async def review(
    request: Request,
    workflow: Annotated[ReceiptWorkflow, Depends(get_workflow)],
) -> Response:
    form = await request.form()
    action = str(form.get("action") or "update")
    changes = {key: str(value) for key, value in form.items() if key in EDITABLE_KEYS}

    try:
        if action == "discard":
            workflow.discard()
            return RedirectResponse(url="/", status_code=303)

        workflow.edit(changes)
        if action == "save":
            result = await workflow.save()
            return RedirectResponse(url=f"/?saved={result.outcome.value}", status_code=303)
    except InvalidInput as exc:
        return _render_index(
            request,
            workflow,
            notice=str(exc),
            field_errors=exc.field_errors,
            status_code=422,
        )
    except PayTrackError as exc:
        return _render_index(request, workflow, notice=str(exc), status_code=to_http_error(exc).status_code)

    return RedirectResponse(url="/", status_code=303)


@router.get("/settings", response_class=HTMLResponse)
async def settings_page(
    request: Request,
    workflow: Annotated[ReceiptWorkflow, Depends(get_workflow)],
    saved: bool = False,
) -> HTMLResponse:
    context = configuration.build_settings_context(workflow.state.settings)
    return templates.TemplateResponse(
        request,
        "settings.html",
        {
            "status": "Configuration saved." if saved else None,
            **context,
        },
    )


@router.post("/settings", response_class=HTMLResponse)
async def save_settings(
    request: Request,
    workflow: Annotated[ReceiptWorkflow, Depends(get_workflow)],
) -> Response:
    form = await request.form()
    payload = {key: str(value) for key, value in form.items()}
    errors, new_settings = configuration.validate_settings_form(payload)
    if errors or new_settings is None:
        context = configuration.build_settings_context(
            workflow.state.settings,
            form_values=payload,
            field_errors=errors,
        )
        return templates.TemplateResponse(
            request,
            "settings.html",
            {
                "status": None,
                **context,
            },
            status_code=422,
        )
    workflow.update_settings(new_settings)
    return RedirectResponse(url="/settings?saved=1", status_code=303)
