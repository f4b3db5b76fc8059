from html import escape
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from loguru import logger
from pydantic import ValidationError
from ..deps import get_bill_store, get_new_bill_validator, get_session, NavigationRecorder
from ...core.errors import SubmissionError
from ...core.routes import route_path
from ...core.session import SessionIdentity
from ...models.bill import Attachment, BillListView, NewBillForm
from ...services.bill_list import BillListPresenter
from ...services.new_bill import NewBillValidator, NO_ATTACHMENT_MESSAGE
from ...services.storage import BillStoreBase

router = APIRouter(prefix="/bills", tags=["bills"])


def _error_status(view: BillListView) -> int:
    error = view.error
    if error.status_code is not None and error.status_code >= 400:
        return error.status_code
    return 404 if error.kind == "not_found" else 500


@router.get("")
async def list_bills(
    session: SessionIdentity = Depends(get_session),
    store: BillStoreBase = Depends(get_bill_store),
):
    """List the connected employee's bills, most recent first"""
    presenter = BillListPresenter(store, session, on_navigate=NavigationRecorder())
    view = await presenter.get_bills()
    if not view.ok:
        return JSONResponse(status_code=_error_status(view), content=view.model_dump(by_alias=True))
    return view.model_dump(by_alias=True)


@router.get("/page", response_class=HTMLResponse)
async def bills_page(
    session: SessionIdentity = Depends(get_session),
    store: BillStoreBase = Depends(get_bill_store),
):
    """Render the bill list (or the error panel) as HTML"""
    presenter = BillListPresenter(store, session, on_navigate=NavigationRecorder())
    view = await presenter.get_bills()

    if not view.ok:
        return HTMLResponse(status_code=_error_status(view), content=f"""
        <html>
            <body style="font-family: Arial; padding: 50px;">
                <h2>Erreur</h2>
                <div data-testid="error-message">{escape(view.error.message)}</div>
            </body>
        </html>
        """)

    rows = "".join(
        f"""
                    <tr>
                        <td>{escape(row.type or "")}</td>
                        <td>{escape(row.name or "")}</td>
                        <td>{escape(row.display_date)}</td>
                        <td>{row.amount if row.amount is not None else ""} €</td>
                        <td>{escape(row.display_status)}</td>
                        <td><a data-testid="icon-eye" href="/bills/{escape(row.row_id or "")}/attachment">voir</a></td>
                    </tr>"""
        for row in view.rows
    )
    return f"""
        <html>
            <body style="font-family: Arial; padding: 50px;">
                <h2>Mes notes de frais</h2>
                <form method="post" action="/bills/new"><button data-testid="btn-new-bill">Nouvelle note de frais</button></form>
                <table>
                    <thead><tr><th>Type</th><th>Nom</th><th>Date</th><th>Montant</th><th>Statut</th><th>Actions</th></tr></thead>
                    <tbody data-testid="tbody">{rows}
                    </tbody>
                </table>
            </body>
        </html>
        """


@router.post("/new")
async def click_new_bill(
    session: SessionIdentity = Depends(get_session),
    store: BillStoreBase = Depends(get_bill_store),
):
    """Handle the "Nouvelle note de frais" button"""
    navigation = NavigationRecorder()
    BillListPresenter(store, session, on_navigate=navigation).handle_click_new_bill()
    return {"navigate": route_path(navigation.current)}


@router.get("/new", response_class=HTMLResponse)
async def new_bill_page(validator: NewBillValidator = Depends(get_new_bill_validator)):
    """Open the new bill form; any previous pending upload is discarded"""
    validator.reset()
    await validator.settle_discards()
    return """
        <html>
            <body style="font-family: Arial; padding: 50px;">
                <h2>Envoyer une note de frais</h2>
                <form data-testid="form-new-bill" method="post" action="/bills/new/submit">
                    <label>Type de dépense</label>
                    <select name="type" data-testid="expense-type">
                        <option>Transports</option><option>Restaurants et bars</option>
                        <option>Hôtel et logement</option><option>Services en ligne</option>
                        <option>IT et électronique</option><option>Equipement et matériel</option>
                        <option>Fournitures de bureau</option>
                    </select>
                    <label>Nom de la dépense</label><input name="name" data-testid="expense-name">
                    <label>Date</label><input type="date" name="date" data-testid="datepicker">
                    <label>Montant TTC</label><input type="number" name="amount" data-testid="amount">
                    <label>TVA</label><input type="number" name="vat" data-testid="vat">
                    <input type="number" name="pct" data-testid="pct">
                    <label>Commentaire</label><textarea name="commentary" data-testid="commentary"></textarea>
                    <label>Justificatif</label><input type="file" name="file" data-testid="file">
                    <button type="submit" data-testid="btn-send-bill">Envoyer</button>
                </form>
            </body>
        </html>
        """


@router.get("/{bill_id}/attachment")
async def show_attachment(
    bill_id: str,
    session: SessionIdentity = Depends(get_session),
    store: BillStoreBase = Depends(get_bill_store),
):
    """Handle a click on a row's eye icon: return the attachment modal"""
    presenter = BillListPresenter(store, session, on_navigate=NavigationRecorder())
    view = await presenter.get_bills()
    if not view.ok:
        raise HTTPException(status_code=_error_status(view), detail=view.error.message)

    row = next((r for r in view.rows if r.row_id == bill_id), None)
    if row is None:
        raise HTTPException(status_code=404, detail="Bill not found")

    modal = presenter.handle_click_icon_eye(row)
    return modal.model_dump(by_alias=True)


@router.post("/new/file")
async def change_file(
    file: UploadFile = File(...),
    validator: NewBillValidator = Depends(get_new_bill_validator),
):
    """
    Handle a file selection on the new bill form.

    The upload starts as soon as the file passes the type check; the
    response waits for it so the client receives the stored file URL.
    """
    attachment = Attachment(
        file_name=file.filename or "",
        content=await file.read(),
        content_type=file.content_type,
    )
    result = validator.handle_change_file(attachment)
    await validator.settle_discards()
    if not result.accepted:
        # The selection is not kept; the client must clear its file input
        raise HTTPException(status_code=400, detail=result.message)

    try:
        pending = await validator.wait_for_upload()
    except SubmissionError as e:
        raise HTTPException(status_code=502, detail=e.message)

    return {
        "fileUrl": pending.file_url,
        "fileName": pending.file_name,
        "billId": pending.bill_id,
        "state": validator.state.value,
    }


@router.post("/new/submit")
async def submit_new_bill(
    type: str | None = Form(None),
    name: str | None = Form(None),
    date: str | None = Form(None),
    amount: str | None = Form(None),
    vat: str | None = Form(None),
    pct: str | None = Form(None),
    commentary: str | None = Form(None),
    validator: NewBillValidator = Depends(get_new_bill_validator),
):
    """Submit the new bill form, then redirect to the bill list"""
    try:
        form = NewBillForm(
            type=type, name=name, date=date, amount=amount,
            vat=vat, pct=pct, commentary=commentary,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))

    try:
        await validator.handle_submit(form)
    except SubmissionError as e:
        if e.message == NO_ATTACHMENT_MESSAGE:
            raise HTTPException(status_code=409, detail=e.message)
        logger.error(f"Bill submission failed: {e.message}")
        raise HTTPException(status_code=502, detail=e.message)

    return RedirectResponse(url=route_path(validator.on_navigate.current), status_code=303)
