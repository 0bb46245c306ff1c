from langchain_core.prompts import ChatPromptTemplate, FewShotChatMessagePromptTemplate


# Prompt for taking notes on a freshly ingested paper
notes_prompt = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            (
                "Take notes on the following scientific paper.\n"
                "This is a technical paper outlining a computer science technique.\n"
                "The goal is to be able to create a complete understanding of the paper after reading all notes.\n\n"
                "Rules:\n"
                "- Include specific quotes and details inside your notes.\n"
                "- Respond with as many notes as it might take to cover the entire paper.\n"
                "- Go into as much detail as you can, while keeping each note on a very specific part of the paper.\n"
                "- Include notes about the results of any experiments the paper describes.\n"
                "- Include notes about any steps to reproduce the results of the experiments.\n"
                "- DO NOT respond with notes like: 'The author discusses how well XYZ works.', "
                "instead explain what XYZ is and how it works.\n"
                "- Every note must list the page numbers it was taken from.\n\n"
                "Respond by calling the PaperNotes tool."
            ),
        ),
        ("human", "Paper: {paper}"),
    ]
)


# Prompt for answering a question over notes + retrieved paper chunks
qa_over_paper_prompt = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            (
                "You are a tenured professor of computer science helping a student with their research.\n"
                "The student has a question regarding a paper they are reading.\n"
                "Here are their notes on the paper:\n"
                "{notes}\n\n"
                "And here are some relevant parts of the paper relating to their question\n"
                "{relevantDocuments}\n\n"
                "Answer the student's question in the context of the paper. You should also suggest followup questions.\n"
                "Take a deep breath, and think through your reply carefully, step by step.\n"
                "Respond by calling the QuestionAnswer tool."
            ),
        ),
        ("human", "Question: {question}"),
    ]
)


# Few-shot prompt for rephrasing the question into an open ended one
_rephrase_examples = [
    {
        "input": "How can I make the LLM smarter?",
        "output": "How does the following paper describe ways to make LLMs more intelligent?",
    },
    {
        "input": "Are the models fast?",
        "output": "How does the model manage performance and is it fast?",
    },
]

_rephrase_example_prompt = ChatPromptTemplate.from_messages(
    [
        ("human", "{input}"),
        ("ai", "{output}"),
    ]
)

rephrase_question_prompt = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            (
                "Using the following examples rephrase the question into a more general and open ended question.\n"
                "The user will always be asking a question about a specific paper, or content within a paper.\n"
                "Only respond with the rephrased question and no extra text."
            ),
        ),
        FewShotChatMessagePromptTemplate(
            example_prompt=_rephrase_example_prompt,
            examples=_rephrase_examples,
        ),
        ("human", "{question}"),
    ]
)


# Prompt for condensing an example file into a JSDoc @example
write_example_code_prompt = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            (
                "You are a software engineer tasked with formatting examples for documentation in the codebase.\n"
                "You're given an existing example of the code, and the class which this documentation is for.\n\n"
                "Rules:\n"
                "- Respond with ONLY the code as the value of a JSON object where the key is 'code' and nothing else.\n"
                "- Trim to essentials, focusing on class-specific elements.\n"
                "- Simplify long, complex examples to demonstrate class functionality.\n"
                "- Ensure valid TypeScript syntax without the need for compilation.\n"
                "- Exclude imports.\n"
                "- Use inline comments for clarity on non-obvious code segments.\n"
                "- If the example is defining extra functions/classes remove them, and replace where they were "
                "being called with descriptive names.\n"
                "- Limit to one class instance call per example (eg a '.call()' or '.invoke()' call).\n"
                "- Minimize changes to already concise examples.\n"
                "- Slim down prompts, while prioritizing input variables (defined with {{}}) in truncated prompts.\n"
                "- Remove 'run' function wrappers, retain enclosed code.\n"
                "- Replace any JSDoc comments in the code with normal comments (eg. //)\n\n"
                "Here's an example of a detailed example, and it refactored for the documentation:\n\n"
                "<original_example>\n"
                "const prompt =\n"
                "  PromptTemplate.fromTemplate(`Write a SQL query to answer the question using the following schema: {{schema}}\n"
                "Question: {{question}}\n"
                "SQL Query:`);\n\n"
                "const model = new ChatOpenAI({{}}).bind({{ stop: ['\\nSQLResult:'] }});\n"
                "const outputParser = new StringOutputParser();\n\n"
                "const getTableInfo = () => {{\n"
                "  const tableName = 'employees';\n"
                "  const columns = [{{ name: 'id', type: 'int', }}, {{ name: 'name', type: 'string', }}];\n"
                "  return {{\n"
                "    tableName,\n"
                "    columns,\n"
                "  }};\n"
                "}};\n\n"
                "const sqlQueryGeneratorChain = RunnableSequence.from([\n"
                "  RunnablePassthrough.assign({{\n"
                "    schema: async () => getTableInfo(),\n"
                "  }}),\n"
                "  prompt,\n"
                "  model,\n"
                "  outputParser,\n"
                "]);\n"
                "const result = await sqlQueryGeneratorChain.invoke({{\n"
                "  question: 'How many employees are there?',\n"
                "}});\n"
                'console.log("The result is: ", result);\n'
                "<original_example />\n\n"
                "<refactored_example>\n"
                "const prompt =\n"
                "  PromptTemplate.fromTemplate(`Write a SQL query to answer the question using the following schema: {{schema}}\n"
                "Question: {{question}}\n"
                "SQL Query:`);\n\n"
                "// The `RunnablePassthrough.assign()` is used here to passthrough the input from the `.invoke()`\n"
                "// call (in this example it's the question), along with any inputs passed to the `.assign()` method.\n"
                "// In this case, we're passing the schema.\n"
                "const sqlQueryGeneratorChain = RunnableSequence.from([\n"
                "  RunnablePassthrough.assign({{\n"
                "    schema: async () => getTableNameAndColumns(),\n"
                "  }}),\n"
                "  prompt,\n"
                '  new ChatOpenAI({{}}).bind({{ stop: ["\\nSQLResult:"] }}),\n'
                "  new StringOutputParser(),\n"
                "]);\n"
                "const result = await sqlQueryGeneratorChain.invoke({{\n"
                "  question: 'How many employees are there?',\n"
                "}});\n"
                "<refactored_example />\n\n"
                "Think this through step by step. Go!"
            ),
        ),
        ("human", "Class to focus example on: {klass}\nCode: {code}"),
    ]
)


# Central dictionary to register prompts
PROMPT_REGISTRY = {
    "notes": notes_prompt,
    "qa_over_paper": qa_over_paper_prompt,
    "rephrase_question": rephrase_question_prompt,
    "write_example_code": write_example_code_prompt,
}
