"""Category taxonomy, generation and read endpoints."""
from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import (
    get_artifact_store,
    get_content_store,
    get_materializer,
    get_taxonomy_store,
)
from ..schemas import (
    CategoryManifestModel,
    CategoryPageModel,
    CategoryTaxonomyModel,
    MaterializeOptions,
)
from ..services.category_materializer import CategoryMaterializer, generate_categories
from ..stores.artifact_store import ArtifactStore
from ..stores.content_store import ContentStore
from ..stores.taxonomy_store import TaxonomyStore

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=CategoryTaxonomyModel)
def get_taxonomy(store: TaxonomyStore = Depends(get_taxonomy_store)) -> CategoryTaxonomyModel:
    return store.read()


@router.put("", response_model=CategoryTaxonomyModel)
def replace_taxonomy(
    taxonomy: CategoryTaxonomyModel,
    store: TaxonomyStore = Depends(get_taxonomy_store),
) -> CategoryTaxonomyModel:
    """Replace the taxonomy, typically with a sitemap-derived ``categories.json``."""

    return store.replace(taxonomy)


@router.get("/manifest", response_model=CategoryManifestModel, response_model_by_alias=True)
def get_manifest(store: ArtifactStore = Depends(get_artifact_store)) -> CategoryManifestModel:
    manifest = store.manifest()
    if manifest is None:
        raise HTTPException(status_code=404, detail="Categories have not been generated yet")
    return manifest


@router.post("/generate", response_model=CategoryManifestModel, response_model_by_alias=True)
def generate(
    options: MaterializeOptions | None = None,
    content_store: ContentStore = Depends(get_content_store),
    taxonomy_store: TaxonomyStore = Depends(get_taxonomy_store),
    materializer: CategoryMaterializer = Depends(get_materializer),
) -> CategoryManifestModel:
    """Regenerate category artifacts synchronously and return the manifest."""

    return generate_categories(content_store, taxonomy_store, materializer, options)


@router.get(
    "/{category_type}/{slug}",
    response_model=CategoryPageModel,
    response_model_by_alias=True,
)
def get_category_page(
    category_type: str,
    slug: str,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=200),
    store: ArtifactStore = Depends(get_artifact_store),
) -> CategoryPageModel:
    """Return one page of a category; pages past the end are empty."""

    result = store.page(category_type, slug, page=page, limit=limit)
    if result is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return result
