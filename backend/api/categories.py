# =====================================
# backend/api/categories.py - Category Management
# =====================================
from fastapi import APIRouter, HTTPException, Depends
from supabase import Client

from api.auth import get_current_user
from api.errors import server_error
from database.supabase_client import get_db
from models.schemas import CategoryCreate, CategoryUpdate, UserResponse
from services.categories import (
    DEFAULT_COLOR,
    DEFAULT_EMOJI,
    is_default_category,
    merge_categories,
    serialize_custom,
)

router = APIRouter()


def find_owned(db: Client, user_id: str, category_id: str):
    result = db.table('categories')\
        .select('*')\
        .eq('id', category_id)\
        .eq('user_id', user_id)\
        .execute()
    return result.data[0] if result.data else None


def name_taken(db: Client, user_id: str, name: str) -> bool:
    result = db.table('categories').select('id').eq('user_id', user_id).eq('name', name).execute()
    return bool(result.data)


@router.get("")
async def get_categories(
    current_user: UserResponse = Depends(get_current_user),
    db: Client = Depends(get_db),
):
    """Defaults plus the user's custom categories"""
    try:
        custom = db.table('categories').select('*').eq('user_id', current_user.id).execute()
        return {"success": True, "data": merge_categories(custom.data or [])}
    except Exception as e:
        raise server_error(e, "Get categories error")


@router.post("", status_code=201)
async def create_category(
    category: CategoryCreate,
    current_user: UserResponse = Depends(get_current_user),
    db: Client = Depends(get_db),
):
    if is_default_category(category.name):
        raise HTTPException(status_code=400, detail="This category name is reserved")

    try:
        if name_taken(db, current_user.id, category.name):
            raise HTTPException(status_code=400, detail="Category already exists")

        result = db.table('categories').insert({
            'user_id': current_user.id,
            'name': category.name,
            'emoji': category.emoji or DEFAULT_EMOJI,
            'color': category.color or DEFAULT_COLOR,
            'is_productive': category.is_productive,
        }).execute()

        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to create category")

        return {
            "success": True,
            "message": "Category created successfully",
            "data": serialize_custom(result.data[0]),
        }

    except HTTPException:
        raise
    except Exception as e:
        raise server_error(e, "Create category error")


@router.put("/{category_id}")
async def update_category(
    category_id: str,
    changes: CategoryUpdate,
    current_user: UserResponse = Depends(get_current_user),
    db: Client = Depends(get_db),
):
    # Defaults are not stored, so there is nothing to update
    if is_default_category(category_id):
        raise HTTPException(status_code=400, detail="Cannot modify default categories")

    try:
        category = find_owned(db, current_user.id, category_id)
        if not category:
            raise HTTPException(status_code=404, detail="Category not found")

        update = {}
        if changes.name and changes.name != category['name']:
            if is_default_category(changes.name):
                raise HTTPException(status_code=400, detail="This category name is reserved")
            if name_taken(db, current_user.id, changes.name):
                raise HTTPException(status_code=400, detail="Category already exists")
            update['name'] = changes.name
        if changes.emoji:
            update['emoji'] = changes.emoji
        if changes.color:
            update['color'] = changes.color
        if changes.is_productive is not None:
            update['is_productive'] = changes.is_productive

        if update:
            result = db.table('categories')\
                .update(update)\
                .eq('id', category_id)\
                .eq('user_id', current_user.id)\
                .execute()
            if result.data:
                category = result.data[0]

        return {
            "success": True,
            "message": "Category updated successfully",
            "data": serialize_custom(category),
        }

    except HTTPException:
        raise
    except Exception as e:
        raise server_error(e, "Update category error")


@router.delete("/{category_id}")
async def delete_category(
    category_id: str,
    current_user: UserResponse = Depends(get_current_user),
    db: Client = Depends(get_db),
):
    if is_default_category(category_id):
        raise HTTPException(status_code=400, detail="Cannot delete default categories")

    try:
        if not find_owned(db, current_user.id, category_id):
            raise HTTPException(status_code=404, detail="Category not found")

        db.table('categories').delete().eq('id', category_id).eq('user_id', current_user.id).execute()

        return {"success": True, "message": "Category deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        raise server_error(e, "Delete category error")
