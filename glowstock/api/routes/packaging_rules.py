"""Packaging rule admin routes."""

from fastapi import APIRouter, HTTPException, Request, status

from glowstock.core.rate_limit import limiter
from glowstock.core.responses import list_response
from glowstock.db.session import DbSession
from glowstock.schemas.packaging import PackagingRuleIn, PackagingRuleResponse
from glowstock.services.packaging_rules import PackagingRuleNotFoundError, PackagingRuleSet
from glowstock.services.stock_store import MaterialNotFoundError

router = APIRouter()


@router.get("/")
@limiter.limit("60/minute")
def list_packaging_rules(request: Request, db: DbSession):
    """List all packaging rules, active or not."""
    rules = PackagingRuleSet(db).list_rules()
    return list_response([PackagingRuleResponse.from_rule(r).model_dump(mode="json") for r in rules])


def _save(db, data: PackagingRuleIn, rule_id=None) -> PackagingRuleResponse:
    rule_set = PackagingRuleSet(db)
    try:
        rule = rule_set.save_rule(data.model_dump(), rule_id=rule_id)
    except PackagingRuleNotFoundError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Packaging rule not found")
    except MaterialNotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    db.commit()
    db.refresh(rule)
    return PackagingRuleResponse.from_rule(rule)


@router.post("/", response_model=PackagingRuleResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_packaging_rule(request: Request, data: PackagingRuleIn, db: DbSession):
    """Create a packaging rule."""
    return _save(db, data)


@router.put("/{rule_id}", response_model=PackagingRuleResponse)
@limiter.limit("30/minute")
def update_packaging_rule(request: Request, rule_id: int, data: PackagingRuleIn, db: DbSession):
    """Update a packaging rule and replace its targets."""
    return _save(db, data, rule_id=rule_id)


@router.delete("/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_packaging_rule(request: Request, rule_id: int, db: DbSession):
    """Delete a packaging rule and its targets."""
    try:
        PackagingRuleSet(db).delete_rule(rule_id)
    except PackagingRuleNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Packaging rule not found")
    db.commit()
