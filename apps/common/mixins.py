class QueryGenerationMixin:
    """Echo the client's query generation counter so it can drop responses to superseded queries."""

    generation_param = "generation"
    generation_header = "X-Query-Generation"

    def finalize_response(self, request, response, *args, **kwargs):
        response = super().finalize_response(request, response, *args, **kwargs)
        generation = request.query_params.get(self.generation_param, "").strip()
        if generation.isdigit():
            response[self.generation_header] = generation
        return response
