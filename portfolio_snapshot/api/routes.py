from fastapi import APIRouter, HTTPException, Request

from portfolio_snapshot.errors import RefreshInProgressError
from portfolio_snapshot.schemas.holding import HoldingRequest
from portfolio_snapshot.services.portfolio import summarize

router = APIRouter()


def _get_holding_or_404(request: Request, holding_id: str):
    holding = request.app.state.holding_store.get(holding_id)
    if holding is None:
        raise HTTPException(status_code=404, detail='holding not found')
    return holding


@router.get('/holdings')
def list_holdings(request: Request):
    return [h.view() for h in request.app.state.holding_store.list_all()]


@router.post('/holdings', status_code=201)
def create_holding(req: HoldingRequest, request: Request):
    return request.app.state.holding_store.add(req).view()


@router.get('/holdings/{holding_id}')
def get_holding(holding_id: str, request: Request):
    return _get_holding_or_404(request, holding_id).view()


@router.put('/holdings/{holding_id}')
def update_holding(holding_id: str, req: HoldingRequest, request: Request):
    holding = request.app.state.holding_store.update(holding_id, req)
    if holding is None:
        raise HTTPException(status_code=404, detail='holding not found')
    return holding.view()


@router.delete('/holdings/{holding_id}', status_code=204)
def delete_holding(holding_id: str, request: Request):
    if not request.app.state.holding_store.delete(holding_id):
        raise HTTPException(status_code=404, detail='holding not found')


@router.post('/prices/refresh')
async def refresh_prices(request: Request):
    service = request.app.state.price_refresh_service
    holdings = request.app.state.holding_store.list_all()
    try:
        result = await service.refresh(holdings)
    except RefreshInProgressError as exc:
        raise HTTPException(status_code=409, detail='REFRESH_IN_PROGRESS') from exc
    return {
        'state': service.state().view(),
        'result': result.model_dump(),
    }


@router.get('/prices/state')
def get_refresh_state(request: Request):
    return request.app.state.price_refresh_service.state().view()


@router.post('/prices/cache/clear')
def clear_price_cache(request: Request):
    service = request.app.state.price_refresh_service
    service.clear_cache()
    return {'cached_symbols': len(service.price_cache)}


@router.get('/portfolio/summary')
def get_portfolio_summary(request: Request):
    holdings = request.app.state.holding_store.list_all()
    return {
        'summary': summarize(holdings).model_dump(),
        'holdings': [h.view() for h in holdings],
        'refresh': request.app.state.price_refresh_service.state().view(),
    }


@router.get('/metrics/price')
def price_metrics(request: Request):
    service = request.app.state.price_refresh_service
    metrics = service.price_cache.metrics()
    metrics.update(service.metrics())
    return metrics
